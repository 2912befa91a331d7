"""Ports consumed by the application services."""

from dispute_sync.application.ports.ledger import (
    ArbitrableContractPort,
    ArbitratorLedgerPort,
)
from dispute_sync.application.ports.ledger_event_source import LedgerEventSourcePort
from dispute_sync.application.ports.store_transport import (
    StoreResponse,
    StoreTransportPort,
)

__all__: list[str] = [
    "ArbitrableContractPort",
    "ArbitratorLedgerPort",
    "LedgerEventSourcePort",
    "StoreResponse",
    "StoreTransportPort",
]
