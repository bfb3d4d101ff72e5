# exceptions.py
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from logger import logger


class MarketplaceError(Exception):
    """Base class for errors raised by the service layer."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(MarketplaceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class ConflictError(MarketplaceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class InvalidCredentialsError(MarketplaceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class UnauthenticatedError(MarketplaceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class ForbiddenError(MarketplaceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(MarketplaceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


async def marketplace_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, MarketplaceError) else MarketplaceError(str(exc))
    headers = None
    if error.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message},
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, RequestValidationError) else RequestValidationError([])
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        messages.append(f"{location}: {item.get('msg')}" if location else item.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "; ".join(messages) or "Invalid request"},
    )


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc) or "Internal server error"},
    )


EXCEPTION_HANDLERS = {
    MarketplaceError: marketplace_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: internal_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
