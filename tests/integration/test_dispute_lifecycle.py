"""Integration tests: a dispute's lifecycle through the dispatcher.

Events flow ledger -> dispatcher -> reconciliation handlers -> store, all
over in-memory stubs. The store answers with latency so queued operations
really overlap in time.
"""

import pytest

from dispute_sync.bootstrap import DisputeSync, create_dispute_sync
from dispute_sync.config import SyncConfig
from dispute_sync.domain.models import DisputeState, LedgerEventKind, Period
from dispute_sync.infrastructure.stubs import (
    ArbitrableContractStub,
    ArbitratorLedgerStub,
    InMemoryStoreTransport,
    LedgerEventSourceStub,
)

ARBITRATOR = "0xarbitrator"
CONTRACT = "0xcontract"
PARTY_A = "0xpartya"
PARTY_B = "0xpartyb"
JUROR = "0xjuror"


@pytest.fixture
def ledger() -> ArbitratorLedgerStub:
    stub = ArbitratorLedgerStub(ARBITRATOR)
    stub.set_period(Period.ACTIVATION, session=1)
    return stub


@pytest.fixture
def arbitrable() -> ArbitrableContractStub:
    stub = ArbitrableContractStub()
    stub.add_contract(CONTRACT, ARBITRATOR, PARTY_A, PARTY_B, status=1)
    stub.add_evidence(CONTRACT, name="contract.pdf", url="https://example.com/c.pdf")
    return stub


@pytest.fixture
def transport() -> InMemoryStoreTransport:
    return InMemoryStoreTransport(auth_token="token", latency=0.001)


@pytest.fixture
def events() -> LedgerEventSourceStub:
    return LedgerEventSourceStub()


@pytest.fixture
def sync(
    ledger: ArbitratorLedgerStub,
    arbitrable: ArbitrableContractStub,
    transport: InMemoryStoreTransport,
    events: LedgerEventSourceStub,
) -> DisputeSync:
    engine = create_dispute_sync(
        SyncConfig(store_uri="memory://store"),
        ledger,
        arbitrable,
        event_source=events,
        transport=transport,
    )
    for account in (PARTY_A, PARTY_B):
        engine.track_account(account)
    return engine


def _stored(transport: InMemoryStoreTransport, account: str, dispute_id: int) -> dict:
    document = transport.profile(account) or {}
    for entry in document.get("disputes", []):
        if entry["disputeId"] == dispute_id:
            return entry
    return {}


class TestDisputeLifecycle:
    """End-to-end flows over the stubs."""

    @pytest.mark.asyncio
    async def test_creation_reaches_both_parties(
        self,
        sync: DisputeSync,
        ledger: ArbitratorLedgerStub,
        transport: InMemoryStoreTransport,
        events: LedgerEventSourceStub,
    ) -> None:
        ledger.add_dispute(CONTRACT, first_session=1)
        ledger.set_block(10, 1000)
        event = events.emit(LedgerEventKind.DISPUTE_CREATION, 10, _disputeID=0)

        result = await sync.dispatcher.dispatch(event)

        assert result.succeeded
        for account in (PARTY_A, PARTY_B):
            stored = _stored(transport, account, 0)
            assert stored["appealCreatedAt"] == [1000000]
            assert stored["partyA"] == PARTY_A

    @pytest.mark.asyncio
    async def test_appeal_arrays_grow_monotonically_across_rounds(
        self,
        sync: DisputeSync,
        ledger: ArbitratorLedgerStub,
        transport: InMemoryStoreTransport,
        events: LedgerEventSourceStub,
    ) -> None:
        ledger.add_dispute(CONTRACT, first_session=1)
        ledger.set_block(10, 100)
        await sync.dispatcher.dispatch(
            events.emit(LedgerEventKind.DISPUTE_CREATION, 10, _disputeID=0)
        )

        snapshots: list[list] = []
        block = 20
        for appeal in range(3):
            session = 1 + appeal
            ledger.update_dispute(0, number_of_appeals=appeal)
            ledger.set_period(Period.VOTE, session=session)
            ledger.deadline = 5000 + appeal
            await sync.dispatcher.dispatch(
                events.emit(LedgerEventKind.NEW_PERIOD, block, _period=int(Period.VOTE))
            )
            ledger.set_period(Period.APPEAL)
            ledger.set_block(block + 1, 200 + appeal)
            await sync.dispatcher.dispatch(
                events.emit(LedgerEventKind.NEW_PERIOD, block + 1, _period=int(Period.APPEAL))
            )
            snapshots.append(list(_stored(transport, PARTY_A, 0)["appealDeadlines"]))
            block += 10

        assert snapshots == [[5000], [5000, 5001], [5000, 5001, 5002]]
        stored = _stored(transport, PARTY_A, 0)
        assert stored["appealRuledAt"] == [200000, 201000, 202000]
        assert stored["appealCreatedAt"] == [100000]

    @pytest.mark.asyncio
    async def test_replay_is_idempotent_for_creation(
        self,
        sync: DisputeSync,
        ledger: ArbitratorLedgerStub,
        transport: InMemoryStoreTransport,
        events: LedgerEventSourceStub,
    ) -> None:
        ledger.add_dispute(CONTRACT, first_session=1)
        ledger.set_block(10, 1000)
        event = events.emit(LedgerEventKind.DISPUTE_CREATION, 10, _disputeID=0)

        await sync.dispatcher.replay([event, event])

        document = transport.profile(PARTY_A)
        assert len(document["disputes"]) == 1

    @pytest.mark.asyncio
    async def test_catch_up_then_view(
        self,
        sync: DisputeSync,
        ledger: ArbitratorLedgerStub,
        transport: InMemoryStoreTransport,
        events: LedgerEventSourceStub,
    ) -> None:
        ledger.add_dispute(CONTRACT, first_session=1)
        ledger.set_block(10, 1000)
        events.emit(LedgerEventKind.DISPUTE_CREATION, 10, _disputeID=0)
        events.emit(
            LedgerEventKind.TOKEN_SHIFT, 11, _disputeID=0, _account=PARTY_A, _amount=10
        )
        events.emit(
            LedgerEventKind.TOKEN_SHIFT, 12, _disputeID=0, _account=PARTY_A, _amount=-3
        )
        events.emit(
            LedgerEventKind.TOKEN_SHIFT, 13, _disputeID=0, _account=PARTY_A, _amount=5
        )
        assert sync.replay is not None

        result = await sync.replay.catch_up(PARTY_A)
        view = await sync.reconciliation.get_data_for_dispute(0, PARTY_A)

        assert result.complete
        assert result.last_block == 13
        assert transport.profile(PARTY_A)["lastBlock"] == 13
        assert view.net_pnk == 12
        assert view.appeal_juror[0].created_at == 1000000
        assert view.evidence[0]["name"] == "contract.pdf"
        assert _stored(transport, PARTY_B, 0).get("netPNK", 0) == 0

    @pytest.mark.asyncio
    async def test_juror_votes_and_execution_view(
        self,
        sync: DisputeSync,
        ledger: ArbitratorLedgerStub,
        transport: InMemoryStoreTransport,
    ) -> None:
        ledger.set_period(Period.VOTE, session=2)
        ledger.add_dispute(CONTRACT, first_session=2)
        ledger.draw_juror(0, JUROR, 1, 3)

        views = await sync.reconciliation.get_disputes_for_user(JUROR)
        assert views[0].appeal_juror[0].can_rule is True

        await sync.reconciliation.submit_votes_for_dispute(0, 1, [1, 3], JUROR)
        ledger.update_dispute(0, state=DisputeState.EXECUTABLE)
        ledger.set_period(Period.EXECUTE)

        view = await sync.reconciliation.get_data_for_dispute(0, JUROR)

        assert view.appeal_juror[0].can_rule is False
        assert view.appeal_rulings[0].can_execute is True
        assert _stored(transport, JUROR, 0)["hasRuled"] is True


class TestLiveDelivery:
    """Live events through DisputeSync.deliver, then catch-up after a restart."""

    @pytest.mark.asyncio
    async def test_catch_up_after_live_delivery_does_not_repeat_shift(
        self,
        sync: DisputeSync,
        ledger: ArbitratorLedgerStub,
        transport: InMemoryStoreTransport,
        events: LedgerEventSourceStub,
    ) -> None:
        ledger.add_dispute(CONTRACT, first_session=1)
        ledger.set_block(5, 1000)
        created = events.emit(LedgerEventKind.DISPUTE_CREATION, 5, _disputeID=0)
        shift = events.emit(
            LedgerEventKind.TOKEN_SHIFT, 6, _disputeID=0, _account=PARTY_A, _amount=10
        )

        await sync.deliver(created)
        await sync.deliver(shift)

        assert transport.profile(PARTY_A)["lastBlock"] == 5
        assert _stored(transport, PARTY_A, 0)["netPNK"] == 10

        result = await sync.catch_up(PARTY_A)

        assert result.complete
        assert result.from_block == 6
        assert result.last_block == 6
        assert _stored(transport, PARTY_A, 0)["netPNK"] == 10

    @pytest.mark.asyncio
    async def test_partly_failed_block_is_replayed_without_double_shift(
        self,
        sync: DisputeSync,
        ledger: ArbitratorLedgerStub,
        transport: InMemoryStoreTransport,
        events: LedgerEventSourceStub,
    ) -> None:
        ledger.add_dispute(CONTRACT, first_session=1)
        ledger.set_block(5, 1000)
        ledger.deadline = 777
        created = events.emit(LedgerEventKind.DISPUTE_CREATION, 5, _disputeID=0)
        shift = events.emit(
            LedgerEventKind.TOKEN_SHIFT,
            6,
            log_index=0,
            _disputeID=0,
            _account=PARTY_A,
            _amount=10,
        )
        new_period = events.emit(
            LedgerEventKind.NEW_PERIOD, 6, log_index=1, _period=int(Period.VOTE)
        )

        await sync.deliver(created)
        await sync.deliver(shift)
        ledger.set_period(Period.VOTE)
        ledger.fail_on("get_deadline_for_open_dispute")
        result = await sync.deliver(new_period)

        assert not result.succeeded
        assert PARTY_A in sync.stalled_accounts

        later = events.emit(LedgerEventKind.NEW_PERIOD, 8, _period=int(Period.VOTE))
        await sync.deliver(later)
        assert transport.profile(PARTY_A)["lastBlock"] == 5

        first = await sync.catch_up(PARTY_A)
        assert first.failed > 0
        assert first.last_block == 5
        assert _stored(transport, PARTY_A, 0)["netPNK"] == 10

        ledger.clear_failures()
        second = await sync.catch_up(PARTY_A)

        assert second.complete
        assert second.last_block == 8
        assert PARTY_A not in sync.stalled_accounts
        assert _stored(transport, PARTY_A, 0)["netPNK"] == 10
        assert _stored(transport, PARTY_A, 0)["appealDeadlines"] == [777]
