"""
Error handling middleware.

Standardizes all API error responses to include:
- error / message: human-readable description
- error_code: machine-readable identifier
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from tradeledger.application.dto.responses import ErrorResponse
from tradeledger.config import get_logger
from tradeledger.core.exceptions import (
    ConflictError,
    LedgerError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    UpstreamError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

# Hint messages per error code
HINT_MAP: dict[str, str] = {
    "INVOICE_NOT_FOUND": "Check the invoice ID and try GET /api/invoices to list invoices.",
    "CUSTOMER_NOT_FOUND": "Check the customer ID and try GET /api/customers.",
    "PRODUCT_NOT_FOUND": "Check the product ID and try GET /api/products.",
    "ORDER_NOT_FOUND": "Check the order ID.",
    "PAYMENT_NOT_FOUND": "Check the payment ID and try GET /api/payments.",
    "ACCOUNT_NOT_FOUND": "Create the account with POST /api/finance/accounts first.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "INVALID_TRANSITION": "The record is already in a state that does not allow this action.",
    "CONCURRENT_MODIFICATION": "Another request changed the same records. Retry the request.",
    "CONFLICT": "The request conflicts with existing data.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current state. Reload and retry.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(
    status_code: int,
    error_code: str,
    message: str,
    path: str,
    detail: str | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=message,
            error_code=error_code,
            message=message,
            hint=_get_hint(error_code, status_code),
            detail=detail,
            path=path,
        ).model_dump(mode="json"),
    )


def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    """Convert exception to standardized JSON response."""
    status_code = _status_for(exc)
    error_code = exc.code if isinstance(exc, LedgerError) else exc.__class__.__name__
    message = exc.message if isinstance(exc, LedgerError) else str(exc)
    request_id = getattr(request.state, "request_id", None)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )
    return error_response(status_code, error_code, message, request.url.path)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches whatever the exception handlers did not and returns it as a 500
    carrying the raw message.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return handle_exception(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(LedgerError)
    async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
        return handle_exception(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Report the first failing field as a 400, with the full list as detail."""
        errors = []
        for error in exc.errors():
            loc = ".".join(str(part) for part in error["loc"] if part != "body")
            errors.append(f"{loc}: {error['msg']}" if loc else error["msg"])

        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "VALIDATION_ERROR",
            errors[0] if errors else "Request validation failed",
            request.url.path,
            detail="; ".join(errors),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = {400: "BAD_REQUEST", 404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}.get(
            exc.status_code, "HTTP_ERROR"
        )
        return error_response(
            exc.status_code,
            error_code,
            str(exc.detail or "An error occurred"),
            request.url.path,
        )
