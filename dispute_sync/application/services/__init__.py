"""Application services."""

from dispute_sync.application.services.dispute_reconciliation_service import (
    DisputeReconciliationService,
)
from dispute_sync.application.services.event_replay_service import (
    CatchUpResult,
    EventReplayService,
)
from dispute_sync.application.services.juror_draw_scanner import (
    JurorDraws,
    JurorDrawScanner,
)
from dispute_sync.application.services.ledger_event_dispatcher import (
    DispatchResult,
    HandlerBinding,
    HandlerFailure,
    LedgerEventDispatcher,
)
from dispute_sync.application.services.ordered_write_queue import OrderedWriteQueue
from dispute_sync.application.services.store_gateway import StoreGateway

__all__: list[str] = [
    "CatchUpResult",
    "DispatchResult",
    "DisputeReconciliationService",
    "EventReplayService",
    "HandlerBinding",
    "HandlerFailure",
    "JurorDraws",
    "JurorDrawScanner",
    "LedgerEventDispatcher",
    "OrderedWriteQueue",
    "StoreGateway",
]
