"""Port for fetching historical ledger events.

Used to catch an account up from its last_block watermark after a restart
or reconnect. Implementations return events in emission order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from dispute_sync.domain.models import LedgerEvent


class LedgerEventSourcePort(ABC):
    """Historical event access for the arbitrator contract."""

    @abstractmethod
    async def get_events_since(self, from_block: int) -> list[LedgerEvent]:
        """Return all arbitrator events at or after from_block.

        Args:
            from_block: First block to include.

        Returns:
            Events ordered by (block_number, log_index).
        """
        ...
