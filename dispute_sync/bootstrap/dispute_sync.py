"""Bootstrap wiring for the dispute sync engine.

Wiring order:
    queue -> transport -> gateway -> scanner -> reconciliation -> dispatcher

Ledger clients are supplied by the caller; they wrap whatever chain client
the deployment uses.

Live events go through DisputeSync.deliver, which also moves each tracked
account's last_block watermark. A watermark only trails the live stream by
one block: the event's own block may still have logs to come.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from structlog import get_logger

from dispute_sync.application.ports.ledger import (
    ArbitrableContractPort,
    ArbitratorLedgerPort,
)
from dispute_sync.application.ports.ledger_event_source import LedgerEventSourcePort
from dispute_sync.application.ports.store_transport import StoreTransportPort
from dispute_sync.application.services import (
    CatchUpResult,
    DispatchResult,
    DisputeReconciliationService,
    EventReplayService,
    JurorDrawScanner,
    LedgerEventDispatcher,
    OrderedWriteQueue,
    StoreGateway,
)
from dispute_sync.config import SyncConfig
from dispute_sync.domain.errors import NotConfiguredError
from dispute_sync.domain.models import LedgerEvent
from dispute_sync.infrastructure.adapters.store_http_transport import (
    StoreHttpTransport,
)
from dispute_sync.infrastructure.observability import configure_structlog

logger = get_logger()


@dataclass(frozen=True)
class DisputeSync:
    """Wired engine components.

    accounts holds every tracked account. stalled_accounts holds those
    whose handlers failed on a live event; their watermark stays put until
    a catch_up pass completes.
    """

    store: StoreGateway
    scanner: JurorDrawScanner
    reconciliation: DisputeReconciliationService
    dispatcher: LedgerEventDispatcher
    replay: EventReplayService | None = None
    accounts: set[str] = field(default_factory=set)
    stalled_accounts: set[str] = field(default_factory=set)

    def track_account(self, account: str) -> None:
        """Register the store update handlers for an account."""
        self.reconciliation.register_store_update_handlers(account, self.dispatcher)
        self.accounts.add(account)
        logger.info("account_tracked", account=account)

    async def deliver(self, event: LedgerEvent) -> DispatchResult:
        """Dispatch a live ledger event and advance the watermarks it settles.

        Every block before the event's block is fully delivered, so each
        tracked, non-stalled account's last_block moves up to
        event.block_number - 1.

        Raises:
            AuthRequiredError: If no store credential is set.
            RequestFailedError: If a watermark write fails.
        """
        result = await self.dispatcher.dispatch(event)
        failed = {failure.account for failure in result.failures}
        if failed:
            self.stalled_accounts.update(failed)
            logger.warning(
                "live_watermark_stalled",
                accounts=sorted(failed),
                block_number=event.block_number,
            )

        settled = event.block_number - 1
        advancing = sorted(self.accounts - self.stalled_accounts)
        if settled > 0 and advancing:
            await asyncio.gather(
                *(self.store.advance_last_block(account, settled) for account in advancing)
            )
        return result

    async def catch_up(self, account: str) -> CatchUpResult:
        """Replay missed events for an account; clears a stalled watermark.

        Raises:
            NotConfiguredError: If no event source was wired.
        """
        if self.replay is None:
            raise NotConfiguredError("No ledger event source configured for catch-up")
        result = await self.replay.catch_up(account)
        if result.complete:
            self.stalled_accounts.discard(account)
        return result


def create_store_gateway(
    config: SyncConfig, transport: StoreTransportPort | None = None
) -> StoreGateway:
    """Create a store gateway with its own write queue.

    Args:
        config: Sync configuration.
        transport: Optional transport override (e.g. an in-memory store).
    """
    if transport is None:
        transport = StoreHttpTransport(
            config.store_uri,
            timeout_seconds=config.store_timeout_seconds,
            auth_token=config.store_auth_token,
        )
    return StoreGateway(transport, OrderedWriteQueue(name="store"))


def create_dispute_sync(
    config: SyncConfig,
    ledger: ArbitratorLedgerPort,
    arbitrable: ArbitrableContractPort,
    event_source: LedgerEventSourcePort | None = None,
    transport: StoreTransportPort | None = None,
    configure_logging: bool = False,
) -> DisputeSync:
    """Wire a dispute sync engine for one arbitrator contract.

    Args:
        config: Sync configuration.
        ledger: Client for the arbitrator contract.
        arbitrable: Reader for arbitrable contracts.
        event_source: Historical event reader. Enables catch-up replay.
        transport: Optional store transport override.
        configure_logging: Configure structlog from config.log_environment.
    """
    if configure_logging:
        configure_structlog(
            environment=config.log_environment, level=config.log_level
        )

    store = create_store_gateway(config, transport)
    scanner = JurorDrawScanner(ledger, max_disputes=config.scan_max_disputes)
    reconciliation = DisputeReconciliationService(ledger, arbitrable, store, scanner)
    dispatcher = LedgerEventDispatcher()
    replay = (
        EventReplayService(event_source, dispatcher, store)
        if event_source is not None
        else None
    )
    logger.info(
        "dispute_sync_created",
        arbitrator_address=ledger.get_contract_address(),
        store_uri=config.store_uri,
        replay_enabled=replay is not None,
    )
    return DisputeSync(
        store=store,
        scanner=scanner,
        reconciliation=reconciliation,
        dispatcher=dispatcher,
        replay=replay,
    )


__all__ = ["DisputeSync", "create_dispute_sync", "create_store_gateway"]
