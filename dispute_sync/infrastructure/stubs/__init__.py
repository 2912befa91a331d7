"""In-memory stub implementations of the ports, for tests and development."""

from dispute_sync.infrastructure.stubs.ledger_event_source_stub import (
    LedgerEventSourceStub,
)
from dispute_sync.infrastructure.stubs.ledger_stub import (
    ArbitrableContractStub,
    ArbitratorLedgerStub,
)
from dispute_sync.infrastructure.stubs.store_transport_stub import (
    InMemoryStoreTransport,
)

__all__ = [
    "ArbitrableContractStub",
    "ArbitratorLedgerStub",
    "InMemoryStoreTransport",
    "LedgerEventSourceStub",
]
