"""Ledger read errors.

The ledger client is an external collaborator. Any of its calls may fail;
those failures are surfaced as ChainReadFailedError and propagated to the
caller without automatic retry. Reading a dispute index past the end of the
ledger's dispute list is an expected condition (IndexOutOfRangeError) used to
terminate enumeration.
"""

from __future__ import annotations

from dispute_sync.domain.exceptions import DisputeSyncError


class LedgerError(DisputeSyncError):
    """Base class for errors raised by the ledger client port."""


class ChainReadFailedError(LedgerError):
    """Raised when a ledger read call fails.

    Attributes:
        operation: Name of the ledger getter that failed.
    """

    def __init__(self, operation: str, reason: str = "") -> None:
        self.operation = operation
        self.reason = reason
        message = f"Ledger read '{operation}' failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class IndexOutOfRangeError(LedgerError):
    """Raised when a dispute index does not exist on the ledger.

    Scan loops treat this as the end of the dispute list, not as a failure.

    Attributes:
        dispute_id: The index that was requested.
    """

    def __init__(self, dispute_id: int) -> None:
        self.dispute_id = dispute_id
        super().__init__(f"Dispute index {dispute_id} is out of range")


class VoteSubmissionFailedError(LedgerError):
    """Raised when the ledger client returns no transaction for a vote."""

    def __init__(self, dispute_id: int, account: str) -> None:
        self.dispute_id = dispute_id
        self.account = account
        super().__init__(f"Unable to submit votes for dispute {dispute_id} from {account}")
