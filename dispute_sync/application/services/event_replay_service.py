"""Event replay service.

Catches an account up with ledger events it missed while offline. The
account's profile keeps a last_block watermark; catch_up fetches every
event after it, replays them through the dispatcher in emission order and
moves the watermark forward.

Watermark rule:
    The watermark only advances to the highest block B such that every
    event at or before B was handled without failure. Events after the
    first failing block are replayed again on the next catch_up.

The dispatcher delivers to every handler registered for the event kind, so
the account's store update handlers must be registered before catch_up.
"""

from __future__ import annotations

from dataclasses import dataclass

from structlog import get_logger

from dispute_sync.application.ports.ledger_event_source import LedgerEventSourcePort
from dispute_sync.application.services.ledger_event_dispatcher import (
    DispatchResult,
    LedgerEventDispatcher,
)
from dispute_sync.application.services.store_gateway import StoreGateway

logger = get_logger()


@dataclass(frozen=True)
class CatchUpResult:
    """Outcome of one catch-up pass."""

    account: str
    from_block: int
    last_block: int
    replayed: int
    failed: int

    @property
    def complete(self) -> bool:
        return self.failed == 0


class EventReplayService:
    """Replays historical ledger events for an account.

    Args:
        event_source: Historical event reader.
        dispatcher: Dispatcher holding the account's handlers.
        store: Store gateway holding the account's watermark.
    """

    def __init__(
        self,
        event_source: LedgerEventSourcePort,
        dispatcher: LedgerEventDispatcher,
        store: StoreGateway,
    ) -> None:
        self._event_source = event_source
        self._dispatcher = dispatcher
        self._store = store

    async def catch_up(self, account: str) -> CatchUpResult:
        """Replay every event after the account's watermark.

        Returns:
            The pass outcome, including the stored watermark.

        Raises:
            AuthRequiredError: If no store credential is set.
            RequestFailedError: If the store cannot be read or written.
        """
        profile = await self._store.set_up_user_profile(account)
        last_block = profile.last_block or 0
        from_block = last_block + 1 if last_block else 0

        events = await self._event_source.get_events_since(from_block)
        results = await self._dispatcher.replay(events)
        watermark = _safe_watermark(results, last_block)
        failed = sum(1 for r in results if not r.succeeded)

        if watermark > last_block:
            await self._store.advance_last_block(account, watermark)

        log = logger.warning if failed else logger.info
        log(
            "event_catch_up_complete",
            account=account,
            from_block=from_block,
            last_block=watermark,
            replayed=len(results),
            failed=failed,
        )
        return CatchUpResult(
            account=account,
            from_block=from_block,
            last_block=watermark,
            replayed=len(results),
            failed=failed,
        )


def _safe_watermark(results: list[DispatchResult], last_block: int) -> int:
    """Highest block whose events, and all earlier ones, succeeded."""
    watermark = last_block
    for index, result in enumerate(results):
        block = result.event.block_number
        if not result.succeeded:
            return watermark
        next_block = (
            results[index + 1].event.block_number if index + 1 < len(results) else None
        )
        if next_block != block:
            watermark = max(watermark, block)
    return watermark
