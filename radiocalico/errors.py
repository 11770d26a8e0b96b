from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from radiocalico.logger import api_logger


class RadioError(Exception):
    """Base for errors that map straight onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RadioError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthRequiredError(RadioError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(RadioError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(RadioError):
    status_code = status.HTTP_409_CONFLICT


class StoreError(RadioError):
    """Backing store failed; the message is safe to show to clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RadioError)
    async def radio_error_handler(request: Request, exc: RadioError):
        headers = None
        if isinstance(exc, AuthRequiredError):
            headers = {"WWW-Authenticate": "Bearer"}
        if exc.status_code >= 500:
            api_logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.message, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(status.HTTP_400_BAD_REQUEST, _describe_validation(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = "Route not found"
        return error_response(exc.status_code, str(message), headers=getattr(exc, "headers", None))

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "Too many requests. Please slow down.",
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        api_logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong!")
