"""Custom exceptions for the Ledgerlight engine.

These exceptions never cross the public API. Helpers raise them while
validating or transforming a ledger, and the ``result_boundary`` decorator in
``ledgerlight_core.result`` converts them into an error ``Result`` before the
caller sees anything.

Example:
    try:
        amount = require_monetary(raw.get("amount"), "amount")
    except ValidationError as e:
        return Result.err(e.to_core_error())
"""

from typing import Any, Optional


class LedgerlightError(Exception):
    """Base exception for all Ledgerlight errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Initialize LedgerlightError.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )


class ValidationError(LedgerlightError):
    """Error raised when an input value violates a ledger contract.

    Covers non-finite or negative amounts, missing required fields, malformed
    collection shapes and invalid enumeration values.

    Attributes:
        field: The field that failed validation.
        value: The invalid value (if safe to include).
        constraint: The validation constraint that was violated.

    Example:
        >>> raise ValidationError(
        ...     "amount must be a finite, non-negative number",
        ...     field="amount",
        ...     value=-5,
        ...     constraint=">= 0",
        ... )
        ValidationError: amount must be a finite, non-negative number
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Initialize ValidationError.

        Args:
            message: Human-readable error description.
            field: The name of the field that failed validation.
            value: The invalid value.
            constraint: Description of the validation rule violated.
            details: Optional dictionary with additional context.
        """
        super().__init__(message, details=details)
        self.field = field
        self.value = value
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if constraint:
            self.details["constraint"] = constraint

    def to_core_error(self):
        """Convert into the structured error carried by a failed ``Result``."""
        from ledgerlight_core.result import CoreError, ErrorKind

        return CoreError(kind=ErrorKind.VALIDATION, message=self.message, field=self.field)


class MalformedLedgerError(ValidationError):
    """Error raised when a ledger payload is missing a required collection.

    Example:
        >>> raise MalformedLedgerError("expenses")
        MalformedLedgerError: Ledger is missing required collection 'expenses'
    """

    def __init__(self, collection: str, *, reason: Optional[str] = None) -> None:
        """Initialize MalformedLedgerError.

        Args:
            collection: The collection key that is missing or malformed.
            reason: Optional override for the default message.
        """
        message = reason or f"Ledger is missing required collection '{collection}'"
        super().__init__(
            message,
            field=collection,
            constraint="collection must be present and be a list",
        )
        self.collection = collection


__all__ = [
    "LedgerlightError",
    "ValidationError",
    "MalformedLedgerError",
]
