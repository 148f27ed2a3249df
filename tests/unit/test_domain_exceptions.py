"""Tests for domain exceptions (error_code, message, details)."""

from farewatch.domain.exceptions import (
    FarewatchException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    UnsupportedOperationException,
)


def test_farewatch_exception_default_error_code() -> None:
    """Base FarewatchException uses class name as error_code when not provided."""
    exc = FarewatchException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "FarewatchException"
    assert exc.details == {}


def test_resource_not_found_exception() -> None:
    exc = ResourceNotFoundException("destination", "d1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert "destination" in exc.message
    assert exc.details == {"resource_type": "destination", "resource_id": "d1"}
    assert isinstance(exc, FarewatchException)


def test_unsupported_operation_exception() -> None:
    exc = UnsupportedOperationException("pricehistory", "restore")
    assert exc.error_code == "UNSUPPORTED_OPERATION"
    assert exc.details["operation"] == "restore"


def test_sql_not_configured_exception() -> None:
    exc = SqlNotConfiguredException()
    assert exc.error_code == "SERVICE_UNAVAILABLE"


def test_to_dict() -> None:
    assert ResourceNotFoundException("user", "u1").to_dict() == {
        "error": "RESOURCE_NOT_FOUND",
        "message": "user not found: u1",
        "details": {"resource_type": "user", "resource_id": "u1"},
    }
