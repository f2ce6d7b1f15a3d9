from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiError:
    code: str
    message: str


STATUS_TO_ERROR_CODE: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMITED",
    500: "INTERNAL_SERVER_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


class AppError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message

    @property
    def code(self) -> str:
        return STATUS_TO_ERROR_CODE.get(self.status_code, "ERROR")


class ValidationError(AppError):
    """Missing or malformed URL / short code."""

    status_code = 400
    message = "Invalid request"


class AuthenticationRequired(AppError):
    status_code = 401
    message = "Sign in required"


class NotFoundOrUnauthorized(AppError):
    # Same answer for "no such code" and "not yours" so existence does not leak.
    status_code = 404
    message = "Not found or not authorized"


class GenerationExhausted(AppError):
    status_code = 500
    message = "Failed to generate unique short code"


class PersistenceError(AppError):
    status_code = 500
    message = "Internal server error"


class ShortCodeConflict(Exception):
    """Raised by a store when an insert hits an existing short code."""

    def __init__(self, short_code: str):
        super().__init__(f"short code already taken: {short_code}")
        self.short_code = short_code


def normalize_http_exception(exc: StarletteHTTPException) -> ApiError:
    """
    Converts HTTPException.detail into (code, message).

    Supports:
    - detail as str -> message=str, code inferred from status
    - detail as {"code": "...", "message": "..."} -> use directly
    - detail as {"error": {"code": "...", "message": "..."}} -> use directly
    """
    status = exc.status_code
    default_code = STATUS_TO_ERROR_CODE.get(status, "ERROR")

    detail: Any = exc.detail
    if isinstance(detail, dict):
        if "error" in detail and isinstance(detail["error"], dict):
            inner = detail["error"]
            if "code" in inner and "message" in inner:
                return ApiError(code=str(inner["code"]), message=str(inner["message"]))
        if "code" in detail and "message" in detail:
            return ApiError(code=str(detail["code"]), message=str(detail["message"]))

    msg = detail if isinstance(detail, str) else "Request failed"
    return ApiError(code=default_code, message=str(msg))


def error_response(status_code: int, error: ApiError, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": error.code, "message": error.message}},
        headers=headers,
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    msg = str(first.get("msg", "Invalid value"))
    # pydantic prefixes messages raised from validators
    msg = msg.removeprefix("Value error, ")
    return f"{'.'.join(loc)}: {msg}" if loc else msg


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, ApiError(code=exc.code, message=exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, normalize_http_exception(exc), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Body and parameter problems surface as the domain ValidationError.
        return await handle_app_error(request, ValidationError(_describe_validation_error(exc)))
