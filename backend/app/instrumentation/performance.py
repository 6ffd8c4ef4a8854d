# app/instrumentation/performance.py
import functools
import inspect
import logging
import time
import tracemalloc
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from app.core import context
from app.core.logging import INSTRUMENTATION_PERFORMANCE_LOGGER
from app.schemas.log_entries import PerformanceLevel, PerformanceLogEntry
from app.services.logging_service import get_logging_service

logger = structlog.get_logger(INSTRUMENTATION_PERFORMANCE_LOGGER)

SLOW_EXECUTION_MS = 500
MAX_LOGGED_PARAMETERS = 3


class Layer(str, Enum):
    SERVICE = "SERVICE"
    CONTROLLER = "CONTROLLER"
    REPOSITORY = "REPOSITORY"


def is_verbose() -> bool:
    """Debug on this module's logger turns on parameter capture and logs every call."""
    return logging.getLogger(INSTRUMENTATION_PERFORMANCE_LOGGER).isEnabledFor(logging.DEBUG)


def should_log_performance(execution_time_ms: int, level: PerformanceLevel, has_error: bool, verbose: bool) -> bool:
    if has_error or verbose:
        return True
    if level in (PerformanceLevel.POOR, PerformanceLevel.CRITICAL):
        return True
    return execution_time_ms > SLOW_EXECUTION_MS


def _thread_cpu_time() -> Optional[int]:
    try:
        return time.thread_time_ns()
    except (AttributeError, OSError):
        return None


def _used_memory() -> Optional[int]:
    if not tracemalloc.is_tracing():
        return None
    return tracemalloc.get_traced_memory()[0]


def extract_record_count(result: Any) -> Optional[int]:
    if isinstance(result, (list, tuple)):
        return len(result)
    total = getattr(result, "total", None)
    if isinstance(total, int) and not isinstance(total, bool):
        return total
    return None


def extract_parameters(args, kwargs) -> Dict[str, str]:
    values = [*args, *kwargs.values()][:MAX_LOGGED_PARAMETERS]
    return {f"arg{i}": type(value).__name__ for i, value in enumerate(values) if value is not None}


class _Measurement:
    def __init__(self):
        self.started = time.perf_counter()
        self.cpu_started = _thread_cpu_time()
        self.memory_started = _used_memory()

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)

    def cpu_nanos(self) -> Optional[int]:
        cpu_now = _thread_cpu_time()
        if self.cpu_started is None or cpu_now is None:
            return None
        return cpu_now - self.cpu_started

    def memory_delta(self) -> Optional[int]:
        memory_now = _used_memory()
        if self.memory_started is None or memory_now is None:
            return None
        delta = memory_now - self.memory_started
        return delta if delta > 0 else None


class PerformanceRecorder:
    def __init__(self, layer: Layer, class_name: str, method_name: str, logging_service=None):
        self.layer = Layer(layer)
        self.class_name = class_name
        self.method_name = method_name
        self.operation_name = f"{self.layer.value}:{class_name}.{method_name}"
        self._logging_service = logging_service

    @property
    def logging_service(self):
        if self._logging_service is None:
            self._logging_service = get_logging_service()
        return self._logging_service

    def record(self, measurement: _Measurement, args, kwargs, result=None, error: Optional[BaseException] = None) -> None:
        try:
            execution_time_ms = measurement.elapsed_ms()
            verbose = is_verbose()
            metrics = {"layer": self.layer.value}
            if result is not None:
                metrics["resultType"] = type(result).__name__

            entry = PerformanceLogEntry(
                operation_name=self.operation_name,
                class_name=self.class_name,
                method_name=self.method_name,
                execution_time_ms=execution_time_ms,
                cpu_time_nanos=measurement.cpu_nanos(),
                memory_used_bytes=measurement.memory_delta(),
                record_count=extract_record_count(result),
                parameters=extract_parameters(args, kwargs) if verbose else None,
                additional_metrics=metrics,
                correlation_id=context.get_correlation_id(),
                user_id=context.get_user_id() or "system",
                error_message=(str(error) or type(error).__name__) if error is not None else None,
            )

            if should_log_performance(execution_time_ms, entry.performance_level, entry.failed, verbose):
                self.logging_service.log_performance(entry)
        except Exception:
            logger.error(f"Failed to record performance for {self.operation_name}", exc_info=True)


def wrap_performance(func, layer: Layer, class_name: str, logging_service=None):
    recorder = PerformanceRecorder(layer, class_name, func.__name__, logging_service)

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            measurement = _Measurement()
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                recorder.record(measurement, args, kwargs, error=exc)
                raise
            recorder.record(measurement, args, kwargs, result=result)
            return result
        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        measurement = _Measurement()
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            recorder.record(measurement, args, kwargs, error=exc)
            raise
        recorder.record(measurement, args, kwargs, result=result)
        return result
    return wrapper


def performance_logged(layer: Layer, class_name: str = None):
    """Decorator form of the performance wrap, used on route functions."""
    def decorator(func):
        name = class_name or func.__module__.rsplit(".", 1)[-1]
        return wrap_performance(func, layer, name)
    return decorator
