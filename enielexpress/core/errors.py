"""Error taxonomy and the handlers that render it as ``{"message": ...}`` JSON."""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, *, errors: Optional[list] = None, details: Any = None):
        self.message = message or self.default_message
        self.errors = errors
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> dict:
        body: dict = {"message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Access denied. No token provided."


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied."


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 400
    default_message = "Conflict"


class PaymentVerificationFailed(AppError):
    status_code = 400
    default_message = "Payment verification failed"


class RateLimited(AppError):
    status_code = 429
    default_message = "Too many requests, please try again later."


class ServiceUnavailable(AppError):
    status_code = 503
    default_message = "Service unavailable"


class ServerError(AppError):
    status_code = 500


def _field_errors(exc: RequestValidationError) -> list[dict]:
    out = []
    for err in exc.errors():
        # drop the leading "body"/"query"/"path" segment
        loc = [str(p) for p in err.get("loc", ())][1:]
        out.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return out


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": _field_errors(exc)})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
