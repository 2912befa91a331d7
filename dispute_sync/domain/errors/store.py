"""Metadata store errors.

Absence errors (ProfileNotFoundError, DisputeNotFoundError) are expected
conditions: reconciliation folds them into empty defaults and only callers
that require an existing record see them. Credential errors are fatal to the
single operation that raised them and are never retried.
"""

from __future__ import annotations

from typing import Any

from dispute_sync.domain.exceptions import DisputeSyncError


class StoreError(DisputeSyncError):
    """Base class for metadata store errors."""


class ProfileNotFoundError(StoreError):
    """Raised when an operation requires a user profile that does not exist.

    Attributes:
        address: The user address with no stored profile.
    """

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"No stored profile for user {address}")


class DisputeNotFoundError(StoreError):
    """Raised when a user has no stored record for a dispute.

    Attributes:
        address: The user address.
        arbitrator_address: The arbitrator contract address.
        dispute_id: The dispute index.
    """

    def __init__(self, address: str, arbitrator_address: str, dispute_id: int) -> None:
        self.address = address
        self.arbitrator_address = arbitrator_address
        self.dispute_id = dispute_id
        super().__init__(
            f"User {address} has no store data for dispute "
            f"{dispute_id} of arbitrator {arbitrator_address}"
        )


class NotificationNotFoundError(StoreError):
    """Raised when marking a notification that is not in the user profile."""

    def __init__(self, tx_hash: str, log_index: int) -> None:
        self.tx_hash = tx_hash
        self.log_index = log_index
        super().__init__(f"No notification for tx {tx_hash} at log index {log_index}")


class AuthRequiredError(StoreError):
    """Raised when a write is attempted without a credential set."""

    def __init__(self) -> None:
        super().__init__(
            "No auth token set. Cannot make writes to store. "
            "Call set_auth_token first."
        )


class InvalidAuthTokenError(StoreError):
    """Raised when the store rejects the credential (HTTP 401).

    Attributes:
        detail: Error detail returned by the store, if any.
    """

    def __init__(self, detail: Any = None) -> None:
        self.detail = detail
        message = "Store rejected the auth token"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RequestFailedError(StoreError):
    """Raised on transport failures and unexpected store responses.

    Attributes:
        status_code: HTTP status, or 0 when no response was received.
        detail: Response body or underlying error description.
    """

    def __init__(self, message: str, status_code: int = 0, detail: Any = None) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)
