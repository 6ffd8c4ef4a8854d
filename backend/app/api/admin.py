# app/api/admin.py
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.core.deps import get_levels
from app.instrumentation.performance import Layer, performance_logged
from app.schemas.log_admin import (
    BatchResultOut,
    LevelChangeOut,
    LoggingInfoOut,
    LogLevelBatchItem,
    LogLevelRequest,
    LogLevelsOut,
    ResetOut,
)
from app.services.log_levels import DEFAULT_LEVEL, LogLevelManager, available_levels
from app.utils.formatting import epoch_millis

router = APIRouter()

CONTROLLER = "LogManagementController"


@router.get("/levels", response_model=LogLevelsOut)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def get_log_levels(manager: LogLevelManager = Depends(get_levels)):
    return LogLevelsOut(
        loggers=manager.list_loggers(),
        available_levels=available_levels(),
        timestamp=epoch_millis(),
    )


@router.put("/levels/{logger_name}", response_model=LevelChangeOut)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def set_log_level(logger_name: str, data: LogLevelRequest, manager: LogLevelManager = Depends(get_levels)):
    try:
        old_level, new_level = manager.set_level(logger_name, data.level)
    except ValueError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    return LevelChangeOut(
        logger_name=logger_name,
        old_level=old_level,
        new_level=new_level,
        timestamp=epoch_millis(),
    )


@router.put("/levels", response_model=BatchResultOut, response_model_exclude_none=True)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def set_log_levels(items: List[LogLevelBatchItem], manager: LogLevelManager = Depends(get_levels)):
    results, summary = manager.set_levels_batch(items)
    return BatchResultOut(results=results, summary=summary, timestamp=epoch_millis())


@router.post("/reset", response_model=ResetOut)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def reset_log_levels(manager: LogLevelManager = Depends(get_levels)):
    return ResetOut(
        reset_loggers=manager.reset_to_defaults(),
        default_level=DEFAULT_LEVEL,
        timestamp=epoch_millis(),
    )


@router.get("/info", response_model=LoggingInfoOut)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def get_logging_info(manager: LogLevelManager = Depends(get_levels)):
    return LoggingInfoOut(**manager.logging_info(), timestamp=epoch_millis())
