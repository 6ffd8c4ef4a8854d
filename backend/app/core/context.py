# app/core/context.py
"""
Request-scoped correlation context.

Values live in structlog's contextvars store: every thread and asyncio task
sees its own copy, and `merge_contextvars` stamps them on each log line.
"""
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

CORRELATION_ID = "correlation_id"
USER_ID = "user_id"
USER_ROLE = "user_role"
SESSION_ID = "session_id"
REQUEST_METHOD = "request_method"
REQUEST_URI = "request_uri"
REMOTE_ADDR = "remote_addr"
USER_AGENT = "user_agent"

MAX_CORRELATION_ID_LENGTH = 64


def set(key: str, value: Any) -> None:
    if value is None:
        return
    structlog.contextvars.bind_contextvars(**{key: value})


def get(key: str) -> Optional[Any]:
    return structlog.contextvars.get_contextvars().get(key)


def get_all() -> Dict[str, Any]:
    return structlog.contextvars.get_contextvars()


def remove(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_all() -> None:
    structlog.contextvars.clear_contextvars()


def get_correlation_id() -> Optional[str]:
    return get(CORRELATION_ID)


def get_user_id() -> Optional[str]:
    return get(USER_ID)


def generate_correlation_id() -> str:
    return uuid4().hex


def normalize_correlation_id(value: Optional[str]) -> str:
    """Keep an inbound id when usable, otherwise mint one; never longer than 64 chars."""
    if value is None or not value.strip():
        value = generate_correlation_id()
    return value[:MAX_CORRELATION_ID_LENGTH]
