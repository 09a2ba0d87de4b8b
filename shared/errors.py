"""
Typed failures raised by the services and their HTTP rendering.

Every error carries a machine-readable ``kind`` and a human-readable
message; the handlers below turn them into ``{"error": kind, "detail": msg}``.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class ServiceError(Exception):
    kind = "Internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ServiceError):
    kind = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class Forbidden(ServiceError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized to perform this operation"


class ValidationError(ServiceError):
    kind = "ValidationError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFound(ServiceError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Conflict(ServiceError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource is in a conflicting state"


class Internal(ServiceError):
    pass


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if isinstance(exc, Internal):
        logger.error("request_failed", path=request.url.path, kind=exc.kind, detail=exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.message},
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Rejected input is not echoed back: it may be a password or a non-finite number
    errors = [
        {key: value for key, value in error.items() if key != "input"} for error in exc.errors()
    ]
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={
            "error": ValidationError.kind,
            "detail": ValidationError.default_message,
            "errors": jsonable_encoder(errors),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
