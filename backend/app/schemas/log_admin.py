# app/schemas/log_admin.py
from typing import Dict, List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LoggerInfo(CamelModel):
    name: str
    effective_level: str
    configured_level: str


class LogLevelRequest(CamelModel):
    level: str


class LogLevelBatchItem(CamelModel):
    logger_name: str
    level: str


class LogLevelsOut(CamelModel):
    loggers: List[LoggerInfo]
    available_levels: List[str]
    timestamp: int


class LevelChangeOut(CamelModel):
    logger_name: str
    old_level: str
    new_level: str
    timestamp: int


class BatchItemResult(CamelModel):
    logger_name: str
    status: str
    old_level: Optional[str] = None
    new_level: Optional[str] = None
    error: Optional[str] = None


class BatchSummary(CamelModel):
    total: int
    success: int
    failure: int


class BatchResultOut(CamelModel):
    results: List[BatchItemResult]
    summary: BatchSummary
    timestamp: int


class ResetOut(CamelModel):
    reset_loggers: List[str]
    default_level: str
    timestamp: int


class LoggingInfoOut(CamelModel):
    logger_context_name: str
    configuration_source: str
    active_profiles: str
    log_directory: str
    available_appenders: List[str]
    log_files: Dict[str, str]
    timestamp: int
