"""In-memory historical event source for testing."""

from __future__ import annotations

from typing import Any

from dispute_sync.application.ports.ledger_event_source import LedgerEventSourcePort
from dispute_sync.domain.models import LedgerEvent, LedgerEventKind


class LedgerEventSourceStub(LedgerEventSourcePort):
    """Holds emitted events and serves them by block range."""

    def __init__(self) -> None:
        self._events: list[LedgerEvent] = []
        self.requested_from: list[int] = []

    def emit(
        self,
        kind: LedgerEventKind | str,
        block_number: int,
        log_index: int = 0,
        tx_hash: str = "",
        **args: Any,
    ) -> LedgerEvent:
        """Record an event. Keyword args are the ledger argument names."""
        if not isinstance(kind, LedgerEventKind):
            kind = LedgerEventKind.from_name(kind)
        event = LedgerEvent(
            kind=kind,
            block_number=block_number,
            args=args,
            tx_hash=tx_hash or f"0x{block_number:x}{log_index:x}",
            log_index=log_index,
        )
        self._events.append(event)
        return event

    async def get_events_since(self, from_block: int) -> list[LedgerEvent]:
        self.requested_from.append(from_block)
        return sorted(
            (e for e in self._events if e.block_number >= from_block),
            key=lambda e: e.ordering_key,
        )
