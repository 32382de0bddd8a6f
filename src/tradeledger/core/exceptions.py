"""
Domain exceptions for the ledger.

Four families map onto HTTP responses in the API layer:
validation (400), not found (404), conflict (409) and upstream (503).
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation
class ValidationError(LedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )
        self.field = field


class InsufficientStockError(ValidationError):
    """Not enough good stock at a location."""

    def __init__(self, product_id: int, location_id: int, available: float, requested: float):
        super().__init__(
            field="quantity",
            message=(
                f"Insufficient stock for product {product_id} at location {location_id}: "
                f"available {available}, requested {requested}"
            ),
            value=requested,
        )
        self.details.update(
            {
                "product_id": product_id,
                "location_id": location_id,
                "available": available,
            }
        )


# Not found
class NotFoundError(LedgerError):
    """Referenced row does not exist."""

    entity = "Record"

    def __init__(self, key: Any, entity: str | None = None):
        entity = entity or self.entity
        super().__init__(
            f"{entity} not found: {key}",
            code=f"{entity.upper().replace(' ', '_')}_NOT_FOUND",
            details={"entity": entity, "key": key},
        )


class CustomerNotFoundError(NotFoundError):
    entity = "Customer"


class ProductNotFoundError(NotFoundError):
    entity = "Product"


class LocationNotFoundError(NotFoundError):
    entity = "Location"


class OrderNotFoundError(NotFoundError):
    entity = "Order"


class InvoiceNotFoundError(NotFoundError):
    entity = "Invoice"


class PaymentNotFoundError(NotFoundError):
    entity = "Payment"


class AccountNotFoundError(NotFoundError):
    entity = "Account"


class SupplierNotFoundError(NotFoundError):
    entity = "Supplier"


class PurchaseNotFoundError(NotFoundError):
    entity = "Purchase"


class ReturnBatchNotFoundError(NotFoundError):
    entity = "Return batch"


class LoadingSheetNotFoundError(NotFoundError):
    entity = "Loading sheet"


# Conflict
class ConflictError(LedgerError):
    """The operation clashes with the current state of the data."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="CONFLICT", details=details)


class ConcurrentModificationError(ConflictError):
    """Another writer holds the rows this operation needs."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Concurrent modification during {operation}: {reason}",
            details={"operation": operation, "reason": reason},
        )
        self.code = "CONCURRENT_MODIFICATION"


class InvalidTransitionError(ConflictError):
    """State machine refused an action."""

    def __init__(self, entity: str, current: str | None, action: str):
        super().__init__(
            f"Cannot {action} {entity} in status '{current}'",
            details={"entity": entity, "current": current, "action": action},
        )
        self.code = "INVALID_TRANSITION"


# Upstream
class UpstreamError(LedgerError):
    """The backing store is unavailable or failing."""

    pass


class DatabaseError(UpstreamError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConfigurationError(LedgerError):
    """Configuration error."""

    pass
