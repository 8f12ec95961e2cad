"""Domain error classes.

Protocol-agnostic errors that represent business failures of the financing
and purchase ledger. Protocol adapters (HTTP today) translate them using
``error_code``.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain errors.

    Protocol-agnostic. Contains business error information that
    can be translated to HTTP, GraphQL, or gRPC formats.
    """

    # Default error code (can be used as i18n key)
    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        """Create a domain error.

        Args:
            message: Human-readable error message (default locale)
            **context: Additional context for error (e.g., ids, balances)
        """
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured format for protocol translation."""
        return {
            "message": self.message,
            "code": self.error_code,
            **self.context,
        }


class ValidationError(DomainError):
    """Business rule validation error.

    Examples:
        - down_payment >= price
        - term_months outside the allowed set

    Protocol mappings:
        - REST: 422 Unprocessable Entity
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, str]] | None = None,
        **context: Any,
    ) -> None:
        """Create a validation error.

        Args:
            message: Overall validation error message (optional if errors provided)
            errors: List of field-specific errors, each with 'field' and 'message'
            **context: Additional context
        """
        self.errors: list[dict[str, str]] | None
        if errors:
            self.errors = errors
            msg = message or "Validation failed"
        else:
            self.errors = None
            msg = message or "Validation error"

        super().__init__(msg, **context)

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured format."""
        if self.errors:
            return {
                "message": self.message,
                "code": self.error_code,
                "errors": self.errors,
                **self.context,
            }
        return super().to_dict()


class InvalidInputError(ValidationError):
    """Malformed numeric parameters (amortization engine, quotation request).

    Protocol mappings:
        - REST: 422 Unprocessable Entity
    """

    error_code: str = "INVALID_INPUT"


class InvalidAmountError(ValidationError):
    """Non-positive payment, or a payment larger than the outstanding balance.

    Protocol mappings:
        - REST: 422 Unprocessable Entity
    """

    error_code: str = "INVALID_AMOUNT"


class NotFoundError(DomainError):
    """Resource not found.

    Examples:
        - Purchase with ID not found
        - Quotation not found

    Protocol mappings:
        - REST: 404 Not Found
    """

    error_code: str = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str | None = None, **context: Any) -> None:
        """Create a not found error.

        Args:
            resource: Type of resource (e.g., "Purchase", "Quotation")
            identifier: Resource identifier
            **context: Additional context
        """
        if identifier:
            message = f"{resource} with identifier '{identifier}' not found"
        else:
            message = f"{resource} not found"

        super().__init__(message, resource=resource, identifier=identifier, **context)


class ConflictError(DomainError):
    """Business constraint conflict.

    Examples:
        - A purchase already exists for the quotation
        - Duplicate payment rejected by policy

    Protocol mappings:
        - REST: 409 Conflict
    """

    error_code: str = "CONFLICT"


class InvalidStateError(ConflictError):
    """Operation incompatible with the current status of an entity.

    Examples:
        - Registering a payment on a Completed purchase
        - Registering a payment before the ledger is initialized

    Protocol mappings:
        - REST: 409 Conflict
    """

    error_code: str = "INVALID_STATE"


class StateConflictError(InvalidStateError):
    """A purchase transition is not defined for (current status, trigger)."""

    error_code: str = "STATE_CONFLICT"

    def __init__(self, current: str, trigger: str, **context: Any) -> None:
        super().__init__(
            f"Cannot apply '{trigger}' to a purchase in status '{current}'",
            current_status=current,
            trigger=trigger,
            **context,
        )


class ConcurrentModificationError(ConflictError):
    """The entity changed between read and write (version mismatch)."""

    error_code: str = "CONCURRENT_MODIFICATION"


class DuplicatePaymentError(ConflictError):
    """An identical payment was registered inside the duplicate window."""

    error_code: str = "DUPLICATE_PAYMENT"


class PermissionDeniedError(DomainError):
    """Authenticated actor lacks the role or ownership required.

    Protocol mappings:
        - REST: 403 Forbidden
    """

    error_code: str = "PERMISSION_DENIED"


class ExternalFailureError(DomainError):
    """Notification or email dispatch failed.

    Always recovered locally; never propagated to the caller of a
    financial mutation.

    Protocol mappings:
        - REST: 502 Bad Gateway
    """

    error_code: str = "EXTERNAL_FAILURE"
