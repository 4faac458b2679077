"""Domain error taxonomy and the single place errors become JSON responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

_logger = logging.getLogger(__name__)


class TrialCardError(Exception):
    """Base for errors that carry their own HTTP status and client-safe message."""

    status_code = 500
    code = "SERVER_ERROR"

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationFailed(TrialCardError):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthError(TrialCardError):
    status_code = 401
    code = "AUTH_ERROR"


class Forbidden(TrialCardError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundOrClosed(TrialCardError):
    status_code = 404
    code = "NOT_FOUND_OR_CLOSED"


class ServerError(TrialCardError):
    status_code = 500
    code = "SERVER_ERROR"


def error_body(message: str) -> dict:
    return {"success": False, "message": message}


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


async def trialcard_error_handler(request: Request, exc: TrialCardError):
    if exc.status_code >= 500:
        _logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=error_body(_first_validation_message(exc)))


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content=error_body("Too many requests"))


async def unhandled_error_handler(request: Request, exc: Exception):
    _logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrialCardError, trialcard_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
