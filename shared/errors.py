"""
Error taxonomy for the booking workflow.

Every failure the workflow can surface is one of these exception types.
Callers branch on the class, never on message text.

Design decisions:
- Errors about the primary business fact (booking existence, ownership,
  state, input) always propagate to the caller
- DeliveryFailure belongs to the notification path and is caught at the
  dispatcher boundary
- Store errors are tagged TRANSIENT or PERMANENT at the collaborator
  boundary; only transient ones are ever retried
"""

from enum import Enum
from typing import Optional


class MarketplaceError(Exception):
    """Base class for all workflow errors."""


class NotFound(MarketplaceError):
    """A referenced booking, service, user or notification does not exist."""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} '{identifier}' not found"
        super().__init__(message)


class RecipientNotFound(NotFound):
    """The user a notification is addressed to has no profile record."""

    def __init__(self, recipient_id: str):
        super().__init__("Recipient", recipient_id)


class Unauthorized(MarketplaceError):
    """The caller does not own the record it is trying to change."""


class InvalidState(MarketplaceError):
    """The requested transition is not valid from the record's current status."""


class ValidationError(MarketplaceError):
    """
    Booking input is missing or malformed.

    Carries every failed check so the caller can report them together.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid booking details: " + "; ".join(self.errors))


class DeliveryFailure(MarketplaceError):
    """A push or email attempt failed."""

    def __init__(self, channel: str, reason: str):
        self.channel = channel
        self.reason = reason
        super().__init__(f"{channel} delivery failed: {reason}")


class GeocodingError(MarketplaceError):
    """The place-search collaborator rejected a forward search."""


# =============================================================================
# Store errors
# =============================================================================

class ErrorKind(str, Enum):
    """Retry classification for store errors."""
    TRANSIENT = "transient"
    PERMANENT = "permanent"


# Codes expected to clear up on their own; permission-denied is not one of them
TRANSIENT_CODES = frozenset({
    "unavailable",
    "resource-exhausted",
    "deadline-exceeded",
    "aborted",
})


def classify_store_code(code: str) -> ErrorKind:
    """Map a store error code to its retry classification."""
    if code in TRANSIENT_CODES:
        return ErrorKind.TRANSIENT
    return ErrorKind.PERMANENT


class StoreError(MarketplaceError):
    """An operation against the document store failed."""

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.kind = classify_store_code(code)
        super().__init__(message or f"Store operation failed ({code})")

    @property
    def is_transient(self) -> bool:
        return self.kind == ErrorKind.TRANSIENT


class DocumentNotFound(StoreError):
    """An update targeted a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__("not-found", f"{collection}/{doc_id} does not exist")


class PreconditionFailed(StoreError):
    """An update's expected field values no longer hold."""

    def __init__(self, collection: str, doc_id: str, field_name: str):
        self.field_name = field_name
        super().__init__(
            "failed-precondition",
            f"{collection}/{doc_id}: precondition on '{field_name}' no longer holds",
        )
