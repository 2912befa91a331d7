"""
Pytest configuration and shared fixtures for dispute_sync tests.

Testing Standards:
- Async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async collaborators, in-memory stubs for flows
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

import pytest

from dispute_sync.application.services import (
    DisputeReconciliationService,
    JurorDrawScanner,
    LedgerEventDispatcher,
    OrderedWriteQueue,
    StoreGateway,
)
from dispute_sync.infrastructure.stubs import (
    ArbitrableContractStub,
    ArbitratorLedgerStub,
    InMemoryStoreTransport,
)

ARBITRATOR = "0xarbitrator"
CONTRACT = "0xcontract"
PARTY_A = "0xpartya"
PARTY_B = "0xpartyb"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from dispute_sync import __version__

    return __version__


@pytest.fixture
def store_transport() -> InMemoryStoreTransport:
    """In-memory store with a credential set."""
    return InMemoryStoreTransport(auth_token="test-token")


@pytest.fixture
def store(store_transport: InMemoryStoreTransport) -> StoreGateway:
    """Store gateway over the in-memory store."""
    return StoreGateway(store_transport, OrderedWriteQueue(name="test-store"))


@pytest.fixture
def ledger() -> ArbitratorLedgerStub:
    """Empty arbitrator ledger."""
    return ArbitratorLedgerStub(ARBITRATOR)


@pytest.fixture
def arbitrable() -> ArbitrableContractStub:
    """Arbitrable contracts with one contract under dispute."""
    stub = ArbitrableContractStub()
    stub.add_contract(CONTRACT, ARBITRATOR, PARTY_A, PARTY_B, status=1)
    return stub


@pytest.fixture
def scanner(ledger: ArbitratorLedgerStub) -> JurorDrawScanner:
    return JurorDrawScanner(ledger)


@pytest.fixture
def reconciliation(
    ledger: ArbitratorLedgerStub,
    arbitrable: ArbitrableContractStub,
    store: StoreGateway,
    scanner: JurorDrawScanner,
) -> DisputeReconciliationService:
    return DisputeReconciliationService(ledger, arbitrable, store, scanner)


@pytest.fixture
def dispatcher() -> LedgerEventDispatcher:
    return LedgerEventDispatcher()
