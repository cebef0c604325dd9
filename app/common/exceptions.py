"""
Domain exceptions and their HTTP translation.

Services raise these; the handlers registered in main.py turn them into the
`{"status": "error", ...}` envelope.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# FastAPI prefixes request errors with where the value came from
REQUEST_LOCATIONS = ("body", "query", "path", "header")


class FacturaError(Exception):
    """Base class for errors raised by the services."""


class ValidationError(FacturaError):
    """Malformed or out-of-range input, with field-level causes."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        super().__init__("; ".join(f"{e.get('field')}: {e.get('message')}" for e in errors))

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        errors = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part not in REQUEST_LOCATIONS]
            errors.append({
                "field": ".".join(loc) or None,
                "message": err.get("msg", "Invalid value"),
            })
        return cls(errors)


class NotFound(FacturaError):
    """Target absent, deleted, or owned by somebody else."""

    def __init__(self, resource: str = "Factura"):
        self.resource = resource
        super().__init__(f"{resource} not found")


class TransientStoreError(FacturaError):
    """The database was unavailable or the statement failed."""


class NotificationFailure(FacturaError):
    """A single notification could not be delivered."""

    def __init__(self, address: Optional[str], reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"Notification to {address} failed: {reason}")


class AuthenticationError(FacturaError):
    """Invalid credentials or token."""


def register_exception_handlers(app: FastAPI) -> None:
    """Register the error envelope handlers on the app."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "error", "errors": exc.errors},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "error", "errors": ValidationError.from_pydantic(exc).errors},
        )

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"status": "error", "message": str(exc)},
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"status": "error", "message": str(exc)},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": "error", "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(NotificationFailure)
    async def notification_failure_handler(request: Request, exc: NotificationFailure):
        logger.error(f"Email failure on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": "Email could not be sent"},
        )

    @app.exception_handler(TransientStoreError)
    async def store_error_handler(request: Request, exc: TransientStoreError):
        logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": "Server error"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": "Server error"},
        )
