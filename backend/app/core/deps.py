# app/core/deps.py
from fastapi import Depends
from sqlmodel import Session

from app.db.base import get_session
from app.db.repository import TodoRepository
from app.instrumentation.performance import Layer
from app.instrumentation.proxy import instrument
from app.services.log_levels import LogLevelManager, get_log_level_manager
from app.services.logging_service import LoggingService, get_logging_service
from app.services.todos import TodoService


def get_db():
    yield from get_session()


def get_logging() -> LoggingService:
    return get_logging_service()


def get_levels() -> LogLevelManager:
    return get_log_level_manager()


def get_todo_service(db: Session = Depends(get_db), logging_service: LoggingService = Depends(get_logging)):
    repository = instrument(TodoRepository(db), Layer.REPOSITORY, logging_service)
    return instrument(TodoService(repository, logging_service), Layer.SERVICE, logging_service)
