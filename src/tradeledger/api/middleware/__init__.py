"""API middleware."""

from tradeledger.api.middleware.error_handler import ErrorHandlerMiddleware
from tradeledger.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
