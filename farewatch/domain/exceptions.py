"""Domain exceptions for the farewatch application.

Defines domain-level exceptions raised by the data access layer. Store
errors (sqlalchemy.exc.SQLAlchemyError) are not wrapped: they propagate
unmodified. Cache failures never surface as exceptions.
"""

from typing import Any


class FarewatchException(Exception):
    """Base exception for all farewatch application errors.

    Presentation layers map these to responses using message, error_code,
    and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. resource_type, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Response body: error code, message and details."""
        return {"error": self.error_code, "message": self.message, "details": self.details}


class ResourceNotFoundException(FarewatchException):
    """Raised when a requested resource is not found (the *_or_fail paths)."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'user', 'destination').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class UnsupportedOperationException(FarewatchException):
    """Raised when an entity type cannot perform an operation (e.g. restore without soft delete)."""

    def __init__(self, resource_type: str, operation: str) -> None:
        super().__init__(
            f"{resource_type} does not support {operation}",
            "UNSUPPORTED_OPERATION",
            {"resource_type": resource_type, "operation": operation},
        )


class SqlNotConfiguredException(FarewatchException):
    """Raised when an operation requires SQL but DATABASE_URL is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
