"""Domain errors for dispute_sync.

Provides specific exception classes for ledger and store failures.
All exceptions inherit from DisputeSyncError.
"""

from dispute_sync.domain.errors.ledger import (
    ChainReadFailedError,
    IndexOutOfRangeError,
    LedgerError,
    VoteSubmissionFailedError,
)
from dispute_sync.domain.errors.store import (
    AuthRequiredError,
    DisputeNotFoundError,
    InvalidAuthTokenError,
    NotificationNotFoundError,
    ProfileNotFoundError,
    RequestFailedError,
    StoreError,
)
from dispute_sync.domain.exceptions import DisputeSyncError, NotConfiguredError

__all__: list[str] = [
    "AuthRequiredError",
    "ChainReadFailedError",
    "DisputeNotFoundError",
    "DisputeSyncError",
    "IndexOutOfRangeError",
    "InvalidAuthTokenError",
    "LedgerError",
    "NotConfiguredError",
    "NotificationNotFoundError",
    "ProfileNotFoundError",
    "RequestFailedError",
    "StoreError",
    "VoteSubmissionFailedError",
]
