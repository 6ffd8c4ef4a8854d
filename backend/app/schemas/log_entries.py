# app/schemas/log_entries.py
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from app.utils.formatting import format_bytes


class AuditOperation(str, Enum):
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SEARCH = "SEARCH"


class AuditResult(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class PerformanceLevel(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    ACCEPTABLE = "ACCEPTABLE"
    POOR = "POOR"
    CRITICAL = "CRITICAL"


def evaluate_performance_level(execution_time_ms: int) -> PerformanceLevel:
    if execution_time_ms < 100:
        return PerformanceLevel.EXCELLENT
    if execution_time_ms < 500:
        return PerformanceLevel.GOOD
    if execution_time_ms < 2000:
        return PerformanceLevel.ACCEPTABLE
    if execution_time_ms < 10000:
        return PerformanceLevel.POOR
    return PerformanceLevel.CRITICAL


def _now():
    return datetime.now(timezone.utc)


class AuditLogEntry(BaseModel):
    """Who did what, to which resource, and how it ended."""

    operation: AuditOperation
    resource_type: str
    resource_id: Optional[str] = None
    user_id: Optional[str] = None
    result: AuditResult
    details: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    session_id: Optional[str] = None
    correlation_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_error_fields(self):
        has_error = self.error_message is not None or self.error_code is not None
        if self.result == AuditResult.FAILURE and (self.error_code is None or self.error_message is None):
            raise ValueError("a FAILURE audit entry needs both error_message and error_code")
        if self.result == AuditResult.SUCCESS and has_error:
            raise ValueError("error fields are only allowed on FAILURE audit entries")
        return self

    @classmethod
    def success(cls, operation, resource_type, resource_id=None, user_id=None, **extra):
        return cls(
            operation=operation,
            resource_type=resource_type,
            resource_id=resource_id,
            user_id=user_id,
            result=AuditResult.SUCCESS,
            **extra,
        )

    @classmethod
    def failure(cls, operation, resource_type, resource_id, user_id, error_message, error_code, **extra):
        return cls(
            operation=operation,
            resource_type=resource_type,
            resource_id=resource_id,
            user_id=user_id,
            result=AuditResult.FAILURE,
            error_message=error_message,
            error_code=error_code,
            **extra,
        )

    @property
    def is_failure(self) -> bool:
        return self.result == AuditResult.FAILURE

    def to_log_message(self) -> str:
        message = (
            f"User {self.user_id or 'anonymous'} performed {self.operation.value} "
            f"on {self.resource_type}"
        )
        if self.resource_id is not None:
            message += f" (ID: {self.resource_id})"
        message += f" - Result: {self.result.value}"
        if self.details is not None:
            message += f" - Details: {self.details}"
        if self.is_failure and self.error_message is not None:
            message += f" - Error: {self.error_message}"
        return message

    def to_log_fields(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class PerformanceLogEntry(BaseModel):
    """Elapsed time and resource usage of one operation; the level always follows the elapsed time."""

    operation_name: Optional[str] = None
    class_name: Optional[str] = None
    method_name: Optional[str] = None
    execution_time_ms: int = Field(ge=0)
    cpu_time_nanos: Optional[int] = None
    memory_used_bytes: Optional[int] = None
    record_count: Optional[int] = None
    parameters: Optional[Dict[str, str]] = None
    additional_metrics: Optional[Dict[str, Any]] = None
    correlation_id: Optional[str] = None
    user_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)
    error_message: Optional[str] = None

    class Config:
        frozen = True

    @computed_field
    @property
    def performance_level(self) -> PerformanceLevel:
        return evaluate_performance_level(self.execution_time_ms)

    @classmethod
    def of(cls, operation_name: str, execution_time_ms: int, **extra):
        return cls(operation_name=operation_name, execution_time_ms=execution_time_ms, **extra)

    @classmethod
    def for_method(cls, class_name: str, method_name: str, execution_time_ms: int, **extra):
        return cls(
            class_name=class_name,
            method_name=method_name,
            operation_name=f"{class_name}.{method_name}",
            execution_time_ms=execution_time_ms,
            **extra,
        )

    @property
    def failed(self) -> bool:
        return self.error_message is not None

    @property
    def is_degraded(self) -> bool:
        return self.performance_level in (PerformanceLevel.POOR, PerformanceLevel.CRITICAL)

    def evaluate_performance_level(self) -> PerformanceLevel:
        return evaluate_performance_level(self.execution_time_ms)

    def to_log_message(self) -> str:
        message = "Performance: "
        if self.class_name and self.method_name:
            message += f"{self.class_name}.{self.method_name}"
        elif self.operation_name:
            message += self.operation_name
        message += f" executed in {self.execution_time_ms}ms"
        if self.record_count is not None:
            message += f" ({self.record_count} records)"
        message += f" - Level: {self.performance_level.value}"
        if self.memory_used_bytes is not None:
            message += f" - Memory: {format_bytes(self.memory_used_bytes)}"
        if self.error_message is not None:
            message += f" - Error: {self.error_message}"
        return message

    def to_log_fields(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
