# app/core/logging.py
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core import context
from app.core.config import settings as default_settings
from app.core.exceptions import error_body

TRACE = 5
OFF = logging.CRITICAL + 10

# Public names accepted by the admin API, mapped onto stdlib levels
LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "OFF": OFF,
}

APP_NAMESPACE = "app"
AUDIT_LOGGER = "audit"
PERFORMANCE_LOGGER = "performance"
# Debug here means verbose instrumentation: every call is timed and logged with its parameters
INSTRUMENTATION_PERFORMANCE_LOGGER = "app.instrumentation.performance"

LOG_FILES = {
    "application": "todo-app.log",
    "error": "todo-app-error.log",
    "audit": "audit.log",
    "performance": "performance.log",
}
APPENDERS = ["CONSOLE", "FILE", "ERROR_FILE", "AUDIT_FILE", "PERFORMANCE_FILE"]

_HANDLER_PREFIX = "todo-app:"


def level_value(name: str) -> Optional[int]:
    if not isinstance(name, str):
        return None
    key = name.strip().upper()
    return LEVELS.get(key)


def level_name(value: int) -> str:
    """Name of the highest public level not above `value` (50 reads as ERROR)."""
    if value >= OFF:
        return "OFF"
    name = "TRACE"
    for candidate, threshold in LEVELS.items():
        if threshold <= value:
            name = candidate
    return name


def _shared_processors():
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _formatter(renderer):
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=_shared_processors(),
    )


def _handler(name, handler, renderer, level=logging.NOTSET):
    handler.set_name(_HANDLER_PREFIX + name)
    handler.setFormatter(_formatter(renderer))
    handler.setLevel(level)
    return handler


def _file_handler(settings, destination, level=logging.NOTSET):
    handler = logging.handlers.RotatingFileHandler(
        settings.log_file(LOG_FILES[destination]),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    return _handler(destination, handler, structlog.processors.JSONRenderer(), level)


def _replace_handlers(logger: logging.Logger, handlers) -> None:
    for existing in list(logger.handlers):
        if (existing.get_name() or "").startswith(_HANDLER_PREFIX):
            logger.removeHandler(existing)
            existing.close()
    for handler in handlers:
        logger.addHandler(handler)


def setup_logging(settings=default_settings):
    logging.addLevelName(TRACE, "TRACE")
    logging.addLevelName(OFF, "OFF")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

    console_renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_JSON_CONSOLE
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    def console():
        return _handler("console", logging.StreamHandler(sys.stdout), console_renderer)

    root_handlers = [console()]
    audit_handlers = [console()]
    performance_handlers = [console()]

    if settings.LOG_TO_FILE:
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)
        root_handlers += [
            _file_handler(settings, "application"),
            _file_handler(settings, "error", logging.ERROR),
        ]
        audit_handlers.append(_file_handler(settings, "audit"))
        performance_handlers.append(_file_handler(settings, "performance"))

    root = logging.getLogger()
    _replace_handlers(root, root_handlers)
    root.setLevel(level_value(settings.LOG_LEVEL) or logging.INFO)

    logging.getLogger(APP_NAMESPACE).setLevel(level_value(settings.APP_LOG_LEVEL) or logging.DEBUG)
    logging.getLogger(INSTRUMENTATION_PERFORMANCE_LOGGER).setLevel(
        logging.DEBUG if settings.ENVIRONMENT == "dev" else logging.INFO
    )

    # Audit and performance entries stay out of the application log
    for name, handlers in ((AUDIT_LOGGER, audit_handlers), (PERFORMANCE_LOGGER, performance_handlers)):
        sink = logging.getLogger(name)
        _replace_handlers(sink, handlers)
        sink.setLevel(logging.INFO)
        sink.propagate = False

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


logger = structlog.get_logger("app.core.logging")

CORRELATION_ID_HEADER = "X-Correlation-ID"
USER_ID_HEADER = "X-User-ID"
SESSION_ID_HEADER = "X-Session-ID"

SECURITY_ERROR_MARKERS = ("security", "authentication", "authorization", "forbidden", "unauthorized")


def resolve_client_ip(headers, remote_addr: Optional[str]) -> Optional[str]:
    forwarded_for = headers.get("X-Forwarded-For")
    if forwarded_for and forwarded_for.lower() != "unknown":
        return forwarded_for.split(",")[0].strip()
    real_ip = headers.get("X-Real-IP")
    if real_ip and real_ip.lower() != "unknown":
        return real_ip
    return remote_addr


def is_security_relevant(exc: BaseException) -> bool:
    error_type = type(exc).__name__.lower()
    return any(marker in error_type for marker in SECURITY_ERROR_MARKERS)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, logging_service=None):
        super().__init__(app)
        self._logging_service = logging_service

    @property
    def logging_service(self):
        if self._logging_service is None:
            from app.services.logging_service import get_logging_service
            self._logging_service = get_logging_service()
        return self._logging_service

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        correlation_id = context.normalize_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        response = None
        try:
            self._setup_context(request, correlation_id)
            self._log_request_start(request)

            response = await call_next(request)
        except Exception as exc:
            self._log_request_error(request, exc)
            # Unhandled errors still answer with the JSON error body and the correlation header
            response = JSONResponse(
                status_code=500,
                content=error_body(500, "Internal server error", request.url.path),
            )
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            status_code = response.status_code if response is not None else 500
            self._log_request_end(request, status_code, duration_ms)
            self.logging_service.clear_context()

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response

    def _client_ip(self, request: Request) -> Optional[str]:
        return resolve_client_ip(request.headers, request.client.host if request.client else None)

    def _setup_context(self, request: Request, correlation_id: str):
        self.logging_service.set_correlation_id(correlation_id)

        user_id = request.headers.get(USER_ID_HEADER)
        if user_id and user_id.strip():
            self.logging_service.set_user_context(user_id.strip(), None)

        context.set(context.REQUEST_METHOD, request.method)
        context.set(context.REQUEST_URI, request.url.path)
        context.set(context.REMOTE_ADDR, self._client_ip(request))
        context.set(context.USER_AGENT, request.headers.get("User-Agent"))
        context.set(context.SESSION_ID, request.headers.get(SESSION_ID_HEADER))

    def _log_request_start(self, request: Request):
        client_ip = self._client_ip(request)
        target = request.url.path
        if request.url.query:
            target += "?" + request.url.query
        logger.info(
            f"Request started: {request.method} {target} from {client_ip}",
            method=request.method,
            path=request.url.path,
            query=request.url.query or None,
            client_ip=client_ip,
        )
        self.logging_service.log_business_operation(
            "HTTP_REQUEST_START", f"{request.method} {request.url.path} from {client_ip}"
        )

    def _log_request_error(self, request: Request, exc: Exception):
        client_ip = self._client_ip(request)
        logger.error(
            f"Request error: {request.method} {request.url.path} from {client_ip} - Error: {exc}",
            client_ip=client_ip,
            error=str(exc),
            exc_info=exc,
        )
        if is_security_relevant(exc):
            self.logging_service.log_security(
                "REQUEST_ERROR",
                f"Error in {request.method} {request.url.path} from {client_ip}: {exc}",
            )

    def _log_request_end(self, request: Request, status_code: int, duration_ms: int):
        logger.info(
            f"Request completed: {request.method} {request.url.path} - Status: {status_code}, Duration: {duration_ms}ms",
            status_code=status_code,
            duration_ms=duration_ms,
        )
        self.logging_service.log_api_call(request.method, request.url.path, status_code, duration_ms)
