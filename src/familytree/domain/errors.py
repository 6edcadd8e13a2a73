"""Typed errors raised by the domain and application layers."""


class FamilyTreeError(Exception):
    """Base class for every error the family tree core raises."""


class ValidationError(FamilyTreeError):
    """Caller-supplied data violates an invariant.

    reason is a stable machine-readable code (e.g. "name_too_short");
    message is meant for display to the user as-is. Never retried.
    """

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


class NotFoundError(FamilyTreeError):
    """An id given to an operation does not resolve."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class PersistenceError(FamilyTreeError):
    """The persistence backend failed to read or write. Safe to retry."""
