"""Shared fixtures: in-memory database, captured structlog output, recording sink."""

import logging
import os

# Settings are read at import time, so these go in before any app import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"
os.environ["ENVIRONMENT"] = "test"

import pytest
import structlog
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

import main
from app.core import context
from app.db.base import engine
from app.services.logging_service import LoggingService


class RecordingLoggingService(LoggingService):
    """Keeps every entry instead of writing it out."""

    def __init__(self):
        self.audits = []
        self.performances = []
        self.events = []

    def log_audit(self, entry):
        self.audits.append(entry)
        self.events.append(("audit", entry))

    def log_performance(self, entry):
        self.performances.append(entry)
        self.events.append(("performance", entry))


def _known_loggers():
    loggers = [logging.getLogger()]
    loggers += [
        entry for entry in logging.root.manager.loggerDict.values()
        if isinstance(entry, logging.Logger)
    ]
    return loggers


@pytest.fixture(autouse=True)
def restore_log_levels():
    """Level administration mutates global state; put every logger back afterwards."""
    snapshot = {log: log.level for log in _known_loggers()}
    yield
    for log in _known_loggers():
        log.setLevel(snapshot.get(log, logging.NOTSET))


@pytest.fixture(autouse=True)
def clean_context():
    context.clear_all()
    yield
    context.clear_all()


@pytest.fixture
def log_output():
    """Captured structlog events, still filtered by the live stdlib levels."""
    capture = structlog.testing.LogCapture()
    previous = structlog.get_config()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            capture,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield capture.entries
    structlog.configure(**previous)


@pytest.fixture
def recorder():
    return RecordingLoggingService()


@pytest.fixture
def db_engine():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield engine


@pytest.fixture
def client(db_engine):
    with TestClient(main.app) as test_client:
        yield test_client


def entries_for(entries, logger_name):
    return [entry for entry in entries if entry.get("logger") == logger_name]


def audit_entries(entries):
    return entries_for(entries, "audit")
