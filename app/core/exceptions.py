# app/core/exceptions.py

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException


# ------------------------------------------------------------
# Domain errors raised by services
# ------------------------------------------------------------
class AppError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidCredentials(AuthError):
    pass


class AccountLocked(AuthError):
    status_code = status.HTTP_403_FORBIDDEN


class UserNotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidResetCode(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN


# ------------------------------------------------------------
# Handlers: every error leaves the app as {"error": "..."}
# ------------------------------------------------------------
async def app_error_handler(request: Request, exc: AppError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", []) if p != "body")
    message = f"{field}: {first.get('msg', 'Invalid request')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": message, "details": jsonable_errors(errors)},
    )


def jsonable_errors(errors):
    return [
        {"loc": [str(p) for p in e.get("loc", [])], "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]


def register_exception_handlers(app):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
