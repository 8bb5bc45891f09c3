"""Application error taxonomy and the FastAPI handlers that render it.

Every error response is a JSON object with a ``message`` field. Outside
production, unexpected failures also carry a ``stack`` string.
"""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from backend.app.core.settings import get_settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST

    @classmethod
    def from_errors(cls, raw_errors) -> "ValidationError":
        """Build from pydantic-style error dicts (``loc`` and ``msg`` keys)."""
        errors = _error_items(raw_errors)
        return cls(_invalid_input_message(errors), errors=errors)


class NotFoundError(AppError):
    """Entity is absent or belongs to another user."""

    status_code = status.HTTP_404_NOT_FOUND


class InvalidOperationError(AppError):
    """The entity exists but its state forbids the requested change."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def _error_items(raw_errors) -> list[dict]:
    return [{"field": _field_name(err.get("loc", ())), "message": err.get("msg", "")} for err in raw_errors]


def _invalid_input_message(errors: list[dict]) -> str:
    fields = []
    for err in errors:
        if err["field"] not in fields:
            fields.append(err["field"])
    return f"Invalid input: {', '.join(fields)}"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    content = {"message": exc.message}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = _error_items(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": _invalid_input_message(errors), "errors": errors},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"message": "Conflicting record already exists."})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"message": "Internal Server Error"}
    if not get_settings().is_production:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
