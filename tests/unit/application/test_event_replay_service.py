"""Unit tests for EventReplayService."""

from unittest.mock import AsyncMock

import pytest

from dispute_sync.application.services import (
    EventReplayService,
    LedgerEventDispatcher,
    StoreGateway,
)
from dispute_sync.domain.models import LedgerEvent, LedgerEventKind
from dispute_sync.infrastructure.stubs import (
    InMemoryStoreTransport,
    LedgerEventSourceStub,
)

ACCOUNT = "0xuser"


@pytest.fixture
def event_source() -> LedgerEventSourceStub:
    return LedgerEventSourceStub()


@pytest.fixture
def replay(
    event_source: LedgerEventSourceStub,
    dispatcher: LedgerEventDispatcher,
    store: StoreGateway,
) -> EventReplayService:
    return EventReplayService(event_source, dispatcher, store)


class TestCatchUp:
    """Tests for watermark-driven catch-up."""

    @pytest.mark.asyncio
    async def test_replays_all_events_for_new_account(
        self,
        replay: EventReplayService,
        dispatcher: LedgerEventDispatcher,
        event_source: LedgerEventSourceStub,
        store_transport: InMemoryStoreTransport,
    ) -> None:
        handler = AsyncMock()
        dispatcher.register_handler(LedgerEventKind.NEW_PERIOD, ACCOUNT, handler)
        event_source.emit(LedgerEventKind.NEW_PERIOD, 5, _period=1)
        event_source.emit(LedgerEventKind.NEW_PERIOD, 9, _period=2)

        result = await replay.catch_up(ACCOUNT)

        assert event_source.requested_from == [0]
        assert handler.await_count == 2
        assert result.complete
        assert result.last_block == 9
        assert store_transport.profile(ACCOUNT)["lastBlock"] == 9

    @pytest.mark.asyncio
    async def test_resumes_after_watermark(
        self,
        replay: EventReplayService,
        event_source: LedgerEventSourceStub,
        store_transport: InMemoryStoreTransport,
    ) -> None:
        store_transport.seed_profile({"address": ACCOUNT, "lastBlock": 9})
        event_source.emit(LedgerEventKind.NEW_PERIOD, 9, _period=2)
        event_source.emit(LedgerEventKind.NEW_PERIOD, 12, _period=3)

        result = await replay.catch_up(ACCOUNT)

        assert event_source.requested_from == [10]
        assert result.replayed == 1
        assert result.last_block == 12

    @pytest.mark.asyncio
    async def test_watermark_stops_before_failed_block(
        self,
        replay: EventReplayService,
        dispatcher: LedgerEventDispatcher,
        event_source: LedgerEventSourceStub,
        store_transport: InMemoryStoreTransport,
    ) -> None:
        async def handler(event: LedgerEvent, account: str) -> None:
            if event.block_number == 7 and event.log_index == 1:
                raise RuntimeError("store down")

        dispatcher.register_handler(LedgerEventKind.NEW_PERIOD, ACCOUNT, handler)
        event_source.emit(LedgerEventKind.NEW_PERIOD, 5)
        event_source.emit(LedgerEventKind.NEW_PERIOD, 7, log_index=0)
        event_source.emit(LedgerEventKind.NEW_PERIOD, 7, log_index=1)
        event_source.emit(LedgerEventKind.NEW_PERIOD, 8)

        result = await replay.catch_up(ACCOUNT)

        assert not result.complete
        assert result.failed == 1
        assert result.last_block == 5
        assert store_transport.profile(ACCOUNT)["lastBlock"] == 5

    @pytest.mark.asyncio
    async def test_no_events_keeps_watermark(
        self,
        replay: EventReplayService,
        store_transport: InMemoryStoreTransport,
    ) -> None:
        store_transport.seed_profile({"address": ACCOUNT, "lastBlock": 3})

        result = await replay.catch_up(ACCOUNT)

        assert result.last_block == 3
        assert result.replayed == 0
        assert store_transport.writes() == []
