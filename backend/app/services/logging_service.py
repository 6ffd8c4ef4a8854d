# app/services/logging_service.py
"""
Structured logging sink for the whole application.

Audit and performance entries go to their own loggers ("audit" and
"performance"); failures and degraded timings are echoed as warnings on the
general log. Nothing in here is allowed to raise into business code.
"""
from functools import lru_cache
from typing import Optional

import structlog

from app.core import context
from app.core.logging import AUDIT_LOGGER, PERFORMANCE_LOGGER
from app.schemas.log_entries import AuditLogEntry, PerformanceLogEntry

SLOW_API_CALL_MS = 1000
LARGE_OPERATION_RECORDS = 1000

logger = structlog.get_logger("app.services.logging_service")
audit_logger = structlog.get_logger(AUDIT_LOGGER)
performance_logger = structlog.get_logger(PERFORMANCE_LOGGER)


def _entry_fields(entry) -> dict:
    fields = entry.to_log_fields()
    # TimeStamper owns "timestamp" on the rendered line
    fields["recorded_at"] = fields.pop("timestamp", None)
    return fields


def api_log_level(status_code: int) -> str:
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "warning"
    if 200 <= status_code < 300:
        return "info"
    return "debug"


class LoggingService:
    def log_audit(self, entry: AuditLogEntry) -> None:
        try:
            message = entry.to_log_message()
            audit_logger.info(message, **_entry_fields(entry))
            if entry.is_failure:
                logger.warning(f"Audit: Operation failed - {message}")
        except Exception:
            logger.error("Failed to log audit entry", exc_info=True)

    def log_performance(self, entry: PerformanceLogEntry) -> None:
        try:
            message = entry.to_log_message()
            performance_logger.info(message, **_entry_fields(entry))
            if entry.is_degraded:
                logger.warning(f"Performance Issue: {message}")
        except Exception:
            logger.error("Failed to log performance entry", exc_info=True)

    def log_business_operation(self, operation: str, details: str) -> None:
        try:
            logger.info(f"Business Operation: {operation} - {details}", operation=operation)
        except Exception:
            logger.error("Failed to log business operation", exc_info=True)

    def log_security(self, event: str, details: str) -> None:
        try:
            logger.warning(f"Security Event: {event} - {details}", security_event=event)
        except Exception:
            logger.error("Failed to log security event", exc_info=True)

    def log_api_call(self, method: str, endpoint: str, status_code: int, duration_ms: int) -> None:
        try:
            log = getattr(logger, api_log_level(status_code))
            log(
                f"API Call: {method} {endpoint} - Status: {status_code}, Duration: {duration_ms}ms",
                method=method,
                endpoint=endpoint,
                status_code=status_code,
                duration_ms=duration_ms,
            )

            if duration_ms > SLOW_API_CALL_MS:
                self.log_performance(
                    PerformanceLogEntry.of(
                        "API_CALL",
                        duration_ms,
                        additional_metrics={
                            "method": method,
                            "endpoint": endpoint,
                            "statusCode": status_code,
                        },
                        correlation_id=context.get_correlation_id(),
                        user_id=context.get_user_id(),
                    )
                )
        except Exception:
            logger.error("Failed to log API call", exc_info=True)

    def log_database_operation(self, operation: str, table: str, record_count: int) -> None:
        try:
            logger.debug(
                f"Database Operation: {operation} on {table} - {record_count} records",
                table=table,
                record_count=record_count,
            )
            if record_count > LARGE_OPERATION_RECORDS:
                logger.warning(f"Large Database Operation: {operation} on {table} - {record_count} records")
        except Exception:
            logger.error("Failed to log database operation", exc_info=True)

    def set_correlation_id(self, correlation_id: Optional[str]) -> None:
        context.set(context.CORRELATION_ID, correlation_id)

    def set_user_context(self, user_id: Optional[str], user_role: Optional[str]) -> None:
        context.set(context.USER_ID, user_id)
        context.set(context.USER_ROLE, user_role)

    def clear_context(self) -> None:
        context.clear_all()

    def log_current_context(self) -> None:
        logger.debug("Current log context", context=context.get_all())


@lru_cache
def get_logging_service() -> LoggingService:
    return LoggingService()
