# app/core/exceptions.py
from datetime import datetime, timezone
from http import HTTPStatus

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger("app.core.exceptions")


class TodoNotFoundError(Exception):
    def __init__(self, todo_id):
        self.todo_id = todo_id
        super().__init__(f"Todo not found with id: {todo_id}")


class InvalidLogLevelError(ValueError):
    def __init__(self, level):
        self.level = level
        super().__init__(f"Invalid log level: {level}")


def error_body(status_code: int, message: str, path: str, errors=None) -> dict:
    body = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status_code,
        "error": _reason(status_code),
        "message": message,
        "path": path,
    }
    if errors:
        body["errors"] = errors
    return body


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown"


async def todo_not_found_handler(request: Request, exc: TodoNotFoundError):
    logger.warning("Todo not found", todo_id=exc.todo_id, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_body(404, str(exc), request.url.path),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "rejectedValue": err.get("input"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    logger.warning("Validation failed", error_count=len(errors), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(error_body(400, "Validation failed", request.url.path, errors)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TodoNotFoundError, todo_not_found_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
