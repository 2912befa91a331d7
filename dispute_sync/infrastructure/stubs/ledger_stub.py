"""In-memory ledger stubs for testing.

ArbitratorLedgerStub and ArbitrableContractStub implement the ledger ports
over plain dicts. Tests set up disputes, periods, draws and block
timestamps directly and inspect the recorded calls afterwards.

Developer Golden Rules:
1. OPERATION_TRACKING - Records every call for test assertions
2. CONFIGURABLE - Reads can be made to fail per operation
3. DETERMINISTIC - Transaction hashes are sequential
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Sequence

from dispute_sync.application.ports.ledger import (
    ArbitrableContractPort,
    ArbitratorLedgerPort,
)
from dispute_sync.domain.errors import ChainReadFailedError, IndexOutOfRangeError
from dispute_sync.domain.models import (
    NULL_ADDRESS,
    ArbitrableContractData,
    Block,
    DisputeRecord,
    DisputeState,
    DisputeStatus,
    Period,
)


class ArbitratorLedgerStub(ArbitratorLedgerPort):
    """In-memory arbitrator contract.

    Usage:
        ledger = ArbitratorLedgerStub("0xarb")
        ledger.add_dispute(contract_address="0xc1", first_session=10)
        ledger.draw_juror(0, "0xjuror", 1)
        ledger.set_period(Period.VOTE)

    Args:
        address: Arbitrator contract address.
        null_terminated: When True, reading past the last dispute returns
            a NULL_ADDRESS record instead of raising IndexOutOfRangeError.
    """

    def __init__(self, address: str = "0xarbitrator", null_terminated: bool = False) -> None:
        self.address = address
        self.null_terminated = null_terminated
        self.period = Period.ACTIVATION
        self.session = 1
        self.deadline = 0
        self.open_disputes: list[int] | None = None
        self._disputes: list[DisputeRecord] = []
        self._rulings: dict[tuple[int, int], int] = {}
        self._draws: dict[int, list[str]] = {}
        self._blocks: dict[int, int] = {}
        self._voted: set[tuple[int, str]] = set()
        self._failing: set[str] = set()
        self._tx_count = 0
        self.submitted_votes: list[tuple[int, int, tuple[int, ...], str]] = []
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.fail_vote_submission = False

    # Setup helpers

    def add_dispute(
        self,
        contract_address: str,
        first_session: int | None = None,
        number_of_appeals: int = 0,
        state: DisputeState = DisputeState.OPEN,
        status: DisputeStatus = DisputeStatus.WAITING,
        arbitration_fee_per_juror: int = 0,
        vote_counters: Sequence[Any] = (),
    ) -> DisputeRecord:
        """Append a dispute and return it."""
        record = DisputeRecord(
            dispute_id=len(self._disputes),
            arbitrator_address=self.address,
            arbitrable_contract_address=contract_address,
            first_session=self.session if first_session is None else first_session,
            number_of_appeals=number_of_appeals,
            state=state,
            status=status,
            arbitration_fee_per_juror=arbitration_fee_per_juror,
            vote_counters=tuple(vote_counters),
        )
        self._disputes.append(record)
        return record

    @property
    def dispute_count(self) -> int:
        return len(self._disputes)

    def update_dispute(self, dispute_id: int, **changes: Any) -> DisputeRecord:
        """Replace fields of a stored dispute (e.g. number_of_appeals)."""
        record = replace(self._disputes[dispute_id], **changes)
        self._disputes[dispute_id] = record
        return record

    def set_period(self, period: Period, session: int | None = None) -> None:
        self.period = period
        if session is not None:
            self.session = session

    def set_ruling(self, dispute_id: int, appeal: int, ruling: int) -> None:
        self._rulings[(dispute_id, appeal)] = ruling

    def set_block(self, block_number: int, timestamp: int) -> None:
        self._blocks[block_number] = timestamp

    def draw_juror(self, dispute_id: int, account: str, *slots: int) -> None:
        """Assign juror slots (1-based) of a dispute to an account."""
        jurors = self._draws.setdefault(dispute_id, [])
        for slot in slots:
            if len(jurors) < slot:
                jurors.extend([NULL_ADDRESS] * (slot - len(jurors)))
            jurors[slot - 1] = account

    def fail_on(self, operation: str) -> None:
        """Make a read raise ChainReadFailedError until cleared."""
        self._failing.add(operation)

    def clear_failures(self) -> None:
        self._failing.clear()

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self._failing:
            raise ChainReadFailedError(operation, "injected failure")

    def calls_to(self, operation: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == operation]

    # ArbitratorLedgerPort

    def get_contract_address(self) -> str:
        return self.address

    async def get_dispute(self, dispute_id: int) -> DisputeRecord:
        self._record("get_dispute", dispute_id)
        if 0 <= dispute_id < len(self._disputes):
            return self._disputes[dispute_id]
        if self.null_terminated:
            return DisputeRecord(
                dispute_id=dispute_id,
                arbitrator_address=self.address,
                arbitrable_contract_address=NULL_ADDRESS,
                first_session=0,
                number_of_appeals=0,
                state=DisputeState.OPEN,
                status=DisputeStatus.WAITING,
            )
        raise IndexOutOfRangeError(dispute_id)

    async def get_period(self) -> Period:
        self._record("get_period")
        return self.period

    async def get_session(self) -> int:
        self._record("get_session")
        return self.session

    async def get_open_disputes_for_session(self) -> list[int]:
        self._record("get_open_disputes_for_session")
        if self.open_disputes is not None:
            return list(self.open_disputes)
        return [
            d.dispute_id
            for d in self._disputes
            if d.last_session == self.session and d.state != DisputeState.EXECUTED
        ]

    async def get_deadline_for_open_dispute(self) -> int:
        self._record("get_deadline_for_open_dispute")
        return self.deadline

    async def current_ruling_for_dispute(self, dispute_id: int, appeal: int) -> int:
        self._record("current_ruling_for_dispute", dispute_id, appeal)
        return self._rulings.get((dispute_id, appeal), 0)

    async def can_rule_dispute(
        self, dispute_id: int, draws: Sequence[int], account: str
    ) -> bool:
        self._record("can_rule_dispute", dispute_id, tuple(draws), account)
        return self.period == Period.VOTE and (dispute_id, account) not in self._voted

    async def is_juror_drawn_for_dispute(
        self, dispute_id: int, draw: int, account: str
    ) -> bool:
        self._record("is_juror_drawn_for_dispute", dispute_id, draw, account)
        jurors = self._draws.get(dispute_id, [])
        return 0 < draw <= len(jurors) and jurors[draw - 1] == account

    async def get_amount_of_jurors_for_dispute(self, dispute_id: int) -> int:
        self._record("get_amount_of_jurors_for_dispute", dispute_id)
        return len(self._draws.get(dispute_id, []))

    async def get_block(self, block_number: int) -> Block:
        self._record("get_block", block_number)
        return Block(number=block_number, timestamp=self._blocks.get(block_number, 0))

    async def submit_votes(
        self,
        dispute_id: int,
        ruling: int,
        draws: Sequence[int],
        account: str,
    ) -> str:
        self._record("submit_votes", dispute_id, ruling, tuple(draws), account)
        if self.fail_vote_submission:
            return ""
        self._voted.add((dispute_id, account))
        self.submitted_votes.append((dispute_id, ruling, tuple(draws), account))
        self._tx_count += 1
        return f"0x{self._tx_count:064x}"


class ArbitrableContractStub(ArbitrableContractPort):
    """In-memory arbitrable contracts keyed by address."""

    def __init__(self) -> None:
        self._contracts: dict[str, ArbitrableContractData] = {}
        self._evidence: dict[str, list[dict[str, Any]]] = {}

    def add_contract(
        self,
        address: str,
        arbitrator_address: str,
        party_a: str,
        party_b: str,
        status: int = 0,
        dispute_id: int | None = None,
    ) -> ArbitrableContractData:
        data = ArbitrableContractData(
            address=address,
            arbitrator_address=arbitrator_address,
            party_a=party_a,
            party_b=party_b,
            status=status,
            dispute_id=dispute_id,
        )
        self._contracts[address] = data
        return data

    def add_evidence(self, address: str, **evidence: Any) -> None:
        self._evidence.setdefault(address, []).append(dict(evidence))

    async def get_data(self, contract_address: str) -> ArbitrableContractData:
        try:
            return self._contracts[contract_address]
        except KeyError as e:
            raise ChainReadFailedError(
                "get_data", f"unknown contract {contract_address}"
            ) from e

    async def get_evidence(self, contract_address: str) -> list[dict]:
        return [dict(e) for e in self._evidence.get(contract_address, [])]
