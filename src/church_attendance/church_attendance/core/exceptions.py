class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class StoreError(DomainError):
    """Raised when the persistence layer fails (unreachable, constraint, I/O)."""


class NotificationError(DomainError):
    """Raised when a notification could not be delivered to one recipient."""
