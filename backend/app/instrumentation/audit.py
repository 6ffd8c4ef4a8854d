# app/instrumentation/audit.py
"""
Audit wrap for service-layer CRUD methods.

The operation is read from the method name. Successful calls produce one
SUCCESS entry; a call that raises produces one FAILURE entry and the
exception continues to the caller untouched.
"""
import functools
import inspect
import json
from typing import Any, Optional

import structlog
from pydantic import BaseModel

from app.core import context
from app.instrumentation.performance import extract_record_count
from app.schemas.log_entries import AuditLogEntry, AuditOperation

logger = structlog.get_logger("app.instrumentation.audit")

SYSTEM_USER = "system"

AUDITED_PREFIXES = {
    "create": AuditOperation.CREATE,
    "find_by_id": AuditOperation.READ,
    "update": AuditOperation.UPDATE,
    "delete": AuditOperation.DELETE,
    "search": AuditOperation.SEARCH,
}


def audited_operation(method_name: str) -> Optional[AuditOperation]:
    for prefix, operation in AUDITED_PREFIXES.items():
        if method_name.startswith(prefix):
            return operation
    return None


def _first_argument(args, kwargs) -> Any:
    if args:
        return args[0]
    return next(iter(kwargs.values()), None)


def extract_id_from_args(args, kwargs) -> Optional[str]:
    first = _first_argument(args, kwargs)
    if isinstance(first, bool):
        return None
    if isinstance(first, int):
        return str(first)
    if isinstance(first, str):
        return first
    return None


def extract_resource_id(result: Any) -> Optional[str]:
    if isinstance(result, dict):
        value = result.get("id")
    else:
        value = getattr(result, "id", None)
    return str(value) if value is not None else None


def serialize(obj: Any) -> Optional[str]:
    if obj is None:
        return None
    try:
        if isinstance(obj, BaseModel):
            return obj.model_dump_json(exclude_none=True)
        return json.dumps(obj, default=str)
    except (TypeError, ValueError):
        return str(obj)


class AuditRecorder:
    def __init__(self, method_name: str, resource_type: str, logging_service):
        self.method_name = method_name
        self.operation = audited_operation(method_name)
        self.resource_type = resource_type
        self.logging_service = logging_service

    def _request_fields(self) -> dict:
        return {
            "user_id": context.get_user_id() or SYSTEM_USER,
            "correlation_id": context.get_correlation_id(),
            "ip_address": context.get(context.REMOTE_ADDR),
            "user_agent": context.get(context.USER_AGENT),
            "session_id": context.get(context.SESSION_ID),
        }

    def before(self, args, kwargs) -> Optional[str]:
        if self.operation != AuditOperation.UPDATE:
            return None
        try:
            todo_id = extract_id_from_args(args, kwargs)
            return f"ID: {todo_id}" if todo_id is not None else None
        except Exception:
            logger.error("Failed to capture before state for update", exc_info=True)
            return None

    def success(self, args, kwargs, result, before_state=None) -> None:
        try:
            fields = self._request_fields()
            op = self.operation
            if op == AuditOperation.CREATE:
                fields.update(
                    resource_id=extract_resource_id(result),
                    new_value=serialize(result),
                    details=f"{self.resource_type.title()} created successfully",
                )
            elif op == AuditOperation.READ:
                fields.update(
                    resource_id=extract_id_from_args(args, kwargs),
                    details=f"{self.resource_type.title()} retrieved successfully",
                )
            elif op == AuditOperation.UPDATE:
                fields.update(
                    resource_id=extract_resource_id(result),
                    old_value=before_state,
                    new_value=serialize(result),
                    details=f"{self.resource_type.title()} updated successfully",
                )
            elif op == AuditOperation.DELETE:
                fields.update(
                    resource_id=extract_id_from_args(args, kwargs),
                    details=f"{self.resource_type.title()} deleted successfully",
                )
            else:
                fields.update(
                    details=f"{self.resource_type.title()} search completed - {extract_record_count(result) or 0} results found",
                )
            self.logging_service.log_audit(AuditLogEntry.success(op, self.resource_type, **fields))
        except Exception:
            logger.error(f"Failed to log audit for {self.method_name}", exc_info=True)

    def failure(self, args, kwargs, exc: BaseException) -> None:
        try:
            entry = AuditLogEntry.failure(
                self.operation,
                self.resource_type,
                extract_id_from_args(args, kwargs),
                error_message=str(exc),
                error_code=type(exc).__name__,
                details="Operation failed with exception",
                **self._request_fields(),
            )
            self.logging_service.log_audit(entry)
        except Exception:
            logger.error("Failed to log audit for operation failure", exc_info=True)


def wrap_audit(func, resource_type: str, logging_service):
    recorder = AuditRecorder(func.__name__, resource_type, logging_service)
    if recorder.operation is None:
        return func

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            before_state = recorder.before(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                recorder.failure(args, kwargs, exc)
                raise
            recorder.success(args, kwargs, result, before_state)
            return result
        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        before_state = recorder.before(args, kwargs)
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            recorder.failure(args, kwargs, exc)
            raise
        recorder.success(args, kwargs, result, before_state)
        return result
    return wrapper
