# app/core/errors.py
"""
Application error taxonomy.

Every error is an HTTPException subclass so services can raise them the
same way they raise plain HTTP errors; the handlers registered in
app/main.py render them as `{"error": ..., "details": ...}`.
"""
import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """Base class: carries a client-facing message and optional details."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Any = None):
        super().__init__(status_code=type(self).status_code, detail=message)
        self.message = message
        self.details = details

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """Malformed or out-of-range input. Nothing is persisted."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class InsufficientStockError(AppError):
    """Requested quantity exceeds the product (or flavor) stock."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, product_id: str, flavor_name: str | None = None):
        super().__init__(
            "Insufficient stock",
            details={"product_id": product_id, "flavor_name": flavor_name},
        )
        self.product_id = product_id
        self.flavor_name = flavor_name


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
        self.headers = {"WWW-Authenticate": "Bearer"}


class InternalError(AppError):
    """Unexpected database / transport failure; surfaced as an opaque 500."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Exception handlers (registered in app/main.py)
# ---------------------------------------------------------------------------


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(),
        headers=getattr(exc, "headers", None),
    )


def _field_from_loc(loc: tuple) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI puts in front.
    parts = [str(p) for p in loc]
    if parts and parts[0] in {"body", "query", "path", "header"}:
        parts = parts[1:]
    return ".".join(parts)


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {"field": _field_from_loc(tuple(err.get("loc", ()))), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )
