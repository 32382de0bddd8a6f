"""Unit tests for domain exceptions."""

from tradeledger.core.exceptions import (
    ConflictError,
    CustomerNotFoundError,
    DatabaseError,
    InsufficientStockError,
    InvalidTransitionError,
    LedgerError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)


class TestLedgerError:
    def test_basic_initialization(self):
        error = LedgerError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "LedgerError"
        assert error.details == {}

    def test_to_dict(self):
        error = LedgerError("Test error", code="TEST_CODE", details={"extra": "info"})
        assert error.to_dict() == {
            "error": "TEST_CODE",
            "message": "Test error",
            "details": {"extra": "info"},
        }


class TestValidationError:
    def test_fields(self):
        error = ValidationError("amount", "Amount must be positive", -5)
        assert error.code == "VALIDATION_ERROR"
        assert error.field == "amount"
        assert error.details["value"] == "-5"

    def test_value_is_truncated(self):
        error = ValidationError("notes", "Too long", "x" * 500)
        assert len(error.details["value"]) == 100

    def test_insufficient_stock_is_validation(self):
        error = InsufficientStockError(product_id=1, location_id=2, available=3, requested=5)
        assert isinstance(error, ValidationError)
        assert error.details["available"] == 3
        assert "available 3, requested 5" in error.message


class TestNotFoundError:
    def test_entity_code(self):
        error = CustomerNotFoundError(42)
        assert error.code == "CUSTOMER_NOT_FOUND"
        assert error.message == "Customer not found: 42"
        assert error.details == {"entity": "Customer", "key": 42}

    def test_entity_override(self):
        error = NotFoundError(7, entity="Return item")
        assert error.code == "RETURN_ITEM_NOT_FOUND"


class TestConflictAndUpstream:
    def test_invalid_transition_is_conflict(self):
        error = InvalidTransitionError("cheque", "Passed", "return")
        assert isinstance(error, ConflictError)
        assert error.code == "INVALID_TRANSITION"
        assert error.message == "Cannot return cheque in status 'Passed'"

    def test_database_error_is_upstream(self):
        error = DatabaseError("insert payments", "disk I/O error")
        assert isinstance(error, UpstreamError)
        assert error.code == "DATABASE_ERROR"
