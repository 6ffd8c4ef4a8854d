# app/services/log_levels.py
"""
Runtime log-level administration.

Levels are written straight onto stdlib loggers; every structlog call checks
them through `filter_by_level`, so a change applies to the next log line.
"""
import logging
from functools import lru_cache
from typing import Iterable, List, Tuple

import structlog

from app.core.config import settings
from app.core.logging import (
    APP_NAMESPACE,
    APPENDERS,
    AUDIT_LOGGER,
    LEVELS,
    LOG_FILES,
    PERFORMANCE_LOGGER,
    level_name,
    level_value,
)
from app.core.exceptions import InvalidLogLevelError
from app.schemas.log_admin import BatchItemResult, BatchSummary, LogLevelBatchItem, LoggerInfo

logger = structlog.get_logger("app.services.log_levels")

ROOT = "ROOT"
INHERITED = "INHERITED"
DEFAULT_LEVEL = "DEBUG"
SINK_DEFAULT_LEVEL = "INFO"

APPLICATION_LOGGERS = (
    APP_NAMESPACE,
    f"{APP_NAMESPACE}.api",
    f"{APP_NAMESPACE}.services",
    f"{APP_NAMESPACE}.db",
)
SINK_LOGGERS = (AUDIT_LOGGER, PERFORMANCE_LOGGER)


def available_levels() -> List[str]:
    return list(LEVELS)


def _get_logger(name: str) -> logging.Logger:
    if name is None or not name.strip():
        raise ValueError("Logger name is required")
    if name.upper() == ROOT:
        return logging.getLogger()
    return logging.getLogger(name)


def _display_name(log: logging.Logger) -> str:
    return ROOT if log is logging.getLogger() else log.name


class LogLevelManager:
    def describe(self, log: logging.Logger) -> LoggerInfo:
        return LoggerInfo(
            name=_display_name(log),
            effective_level=level_name(log.getEffectiveLevel()),
            configured_level=level_name(log.level) if log.level != logging.NOTSET else INHERITED,
        )

    def _application_logger_names(self) -> List[str]:
        registered = logging.root.manager.loggerDict
        names = {
            name
            for name, entry in registered.items()
            if isinstance(entry, logging.Logger) and name.startswith(APP_NAMESPACE + ".")
        }
        return [APP_NAMESPACE, *sorted(names)]

    def list_loggers(self) -> List[LoggerInfo]:
        names = [ROOT, *self._application_logger_names(), *SINK_LOGGERS]
        loggers = [self.describe(_get_logger(name)) for name in names]
        logger.info(f"Log levels requested - {len(loggers)} loggers returned")
        return loggers

    def set_level(self, logger_name: str, level: str) -> Tuple[str, str]:
        value = level_value(level)
        if value is None:
            logger.error("Invalid log level", logger_name=logger_name, level=level)
            raise InvalidLogLevelError(level)

        target = _get_logger(logger_name)
        old_level = level_name(target.getEffectiveLevel())
        target.setLevel(value)
        new_level = level_name(value)
        logger.warning(f"Log level changed: {logger_name} from {old_level} to {new_level}")
        return old_level, new_level

    def set_levels_batch(self, items: Iterable[LogLevelBatchItem]) -> Tuple[List[BatchItemResult], BatchSummary]:
        results = []
        for item in items:
            try:
                old_level, new_level = self.set_level(item.logger_name, item.level)
            except Exception as exc:
                results.append(BatchItemResult(logger_name=item.logger_name, status="FAILED", error=str(exc)))
                continue
            results.append(
                BatchItemResult(
                    logger_name=item.logger_name,
                    status="SUCCESS",
                    old_level=old_level,
                    new_level=new_level,
                )
            )

        success = sum(1 for result in results if result.status == "SUCCESS")
        summary = BatchSummary(total=len(results), success=success, failure=len(results) - success)
        logger.warning(
            f"Batch log level change completed: {summary.success} success, {summary.failure} failures"
        )
        return results, summary

    def reset_to_defaults(self) -> List[str]:
        reset = []
        for name in APPLICATION_LOGGERS:
            logging.getLogger(name).setLevel(LEVELS[DEFAULT_LEVEL])
            reset.append(name)
        for name in SINK_LOGGERS:
            logging.getLogger(name).setLevel(LEVELS[SINK_DEFAULT_LEVEL])
            reset.append(name)
        logger.warning("Application log levels reset to default values", loggers=reset)
        return reset

    def logging_info(self) -> dict:
        logger.debug("Logging info requested")
        return {
            "logger_context_name": settings.APP_NAME,
            "configuration_source": "app.core.logging.setup_logging",
            "active_profiles": settings.ENVIRONMENT,
            "log_directory": settings.LOG_DIR.rstrip("/") + "/",
            "available_appenders": list(APPENDERS),
            "log_files": {name: settings.log_file(filename) for name, filename in LOG_FILES.items()},
        }


@lru_cache
def get_log_level_manager() -> LogLevelManager:
    return LogLevelManager()
