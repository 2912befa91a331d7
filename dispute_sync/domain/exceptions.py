"""Base exception classes for the dispute_sync domain layer."""


class DisputeSyncError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so callers
    can catch every synchronization failure with a single clause while still
    distinguishing ledger, store and configuration failures by subclass.
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)


class NotConfiguredError(DisputeSyncError):
    """Raised when a collaborator required by an operation is not wired.

    Example: asking a scanner bound to one arbitrator contract to scan a
    different arbitrator address.
    """
