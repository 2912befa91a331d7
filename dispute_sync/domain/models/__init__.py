"""Domain models for ledger records, ledger events and store documents."""

from dispute_sync.domain.models.dispute import (
    NULL_ADDRESS,
    AppealJurorInfo,
    AppealRulingInfo,
    ArbitrableContractData,
    Block,
    DisputeRecord,
    DisputeState,
    DisputeStatus,
    DisputeView,
    Period,
)
from dispute_sync.domain.models.ledger_event import LedgerEvent, LedgerEventKind
from dispute_sync.domain.models.store_records import (
    ContractMetadata,
    DisputeProfile,
    Evidence,
    Notification,
    UserProfile,
)

__all__: list[str] = [
    "NULL_ADDRESS",
    "AppealJurorInfo",
    "AppealRulingInfo",
    "ArbitrableContractData",
    "Block",
    "ContractMetadata",
    "DisputeProfile",
    "DisputeRecord",
    "DisputeState",
    "DisputeStatus",
    "DisputeView",
    "Evidence",
    "LedgerEvent",
    "LedgerEventKind",
    "Notification",
    "Period",
    "UserProfile",
]
