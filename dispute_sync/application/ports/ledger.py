"""Ledger client ports.

The arbitrator ledger and the arbitrable contracts are external
collaborators. These ports describe the calls the synchronization engine
consumes; adapters wrap a concrete chain client.

Error contract:
- Any call may raise ChainReadFailedError.
- get_dispute raises IndexOutOfRangeError for an index past the end, or
  returns a record whose arbitrable address is NULL_ADDRESS. Both mean
  "no such dispute" and terminate enumeration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from dispute_sync.domain.models import (
    ArbitrableContractData,
    Block,
    DisputeRecord,
    Period,
)


class ArbitratorLedgerPort(ABC):
    """Read access (and vote submission) for one arbitrator contract."""

    @abstractmethod
    def get_contract_address(self) -> str:
        """Address of the arbitrator contract this client is bound to."""
        ...

    @abstractmethod
    async def get_dispute(self, dispute_id: int) -> DisputeRecord:
        """Read a dispute by index."""
        ...

    @abstractmethod
    async def get_period(self) -> Period:
        """Current period of the current session."""
        ...

    @abstractmethod
    async def get_session(self) -> int:
        """Current session number."""
        ...

    @abstractmethod
    async def get_open_disputes_for_session(self) -> list[int]:
        """Indices of disputes open in the current session."""
        ...

    @abstractmethod
    async def get_deadline_for_open_dispute(self) -> int:
        """Deadline timestamp (ms) of the current period for open disputes."""
        ...

    @abstractmethod
    async def current_ruling_for_dispute(self, dispute_id: int, appeal: int) -> int:
        """Current ruling of a dispute for an appeal round."""
        ...

    @abstractmethod
    async def can_rule_dispute(
        self, dispute_id: int, draws: Sequence[int], account: str
    ) -> bool:
        """Whether account may still rule with the given draws."""
        ...

    @abstractmethod
    async def is_juror_drawn_for_dispute(
        self, dispute_id: int, draw: int, account: str
    ) -> bool:
        """Whether account holds juror slot draw in the dispute."""
        ...

    @abstractmethod
    async def get_amount_of_jurors_for_dispute(self, dispute_id: int) -> int:
        """Number of juror slots drawn for the dispute's current round."""
        ...

    @abstractmethod
    async def get_block(self, block_number: int) -> Block:
        """Read a block header (timestamp in seconds)."""
        ...

    @abstractmethod
    async def submit_votes(
        self,
        dispute_id: int,
        ruling: int,
        draws: Sequence[int],
        account: str,
    ) -> str:
        """Submit votes for the account's draws. Returns the tx hash."""
        ...


class ArbitrableContractPort(ABC):
    """Read access to arbitrable contracts."""

    @abstractmethod
    async def get_data(self, contract_address: str) -> ArbitrableContractData:
        """Read party identities and status of an arbitrable contract."""
        ...

    @abstractmethod
    async def get_evidence(self, contract_address: str) -> list[dict]:
        """Evidence submitted for the contract, as store-shaped dicts."""
        ...
