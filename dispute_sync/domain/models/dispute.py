"""Ledger-side dispute models and the merged dispute view.

The ledger is authoritative for every field in DisputeRecord. It never
records wall-clock time, so creation, deadline and ruling timestamps of an
appeal round only exist once the store has recorded them.

Appeal rounds are indexed 0..number_of_appeals and the last round is the
one running in session first_session + number_of_appeals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"


class Period(IntEnum):
    """Phase of a ledger session."""

    ACTIVATION = 0
    DRAW = 1
    VOTE = 2
    APPEAL = 3
    EXECUTE = 4


class DisputeState(IntEnum):
    """Lifecycle state of a dispute on the arbitrator contract."""

    OPEN = 0
    RESOLVING = 1
    EXECUTABLE = 2
    EXECUTED = 3


class DisputeStatus(IntEnum):
    """Arbitration status as reported by the arbitrator contract."""

    WAITING = 0
    APPEALABLE = 1
    SOLVED = 2


@dataclass(frozen=True)
class DisputeRecord:
    """A dispute as read from the ledger.

    Attributes:
        dispute_id: Index of the dispute on its arbitrator.
        arbitrator_address: Address of the arbitrator contract.
        arbitrable_contract_address: Contract under dispute. NULL_ADDRESS
            marks an unused index.
        first_session: Session in which the dispute was first judged.
        number_of_appeals: Appeals raised so far, never decreasing.
        state: DisputeState on the ledger.
        status: DisputeStatus on the ledger.
        arbitration_fee_per_juror: Fee paid per drawn juror slot (wei).
        vote_counters: Per-round vote counters, indexed by appeal round.
    """

    dispute_id: int
    arbitrator_address: str
    arbitrable_contract_address: str
    first_session: int
    number_of_appeals: int
    state: DisputeState
    status: DisputeStatus
    arbitration_fee_per_juror: int = 0
    vote_counters: tuple[Any, ...] = ()

    @property
    def last_session(self) -> int:
        """Session of the most recent appeal round."""
        return self.first_session + self.number_of_appeals

    @property
    def is_null(self) -> bool:
        """True when the ledger returned the unused-index sentinel."""
        return self.arbitrable_contract_address == NULL_ADDRESS


@dataclass(frozen=True)
class ArbitrableContractData:
    """Data read from the arbitrable contract under dispute."""

    address: str
    arbitrator_address: str
    party_a: str
    party_b: str
    status: int
    dispute_id: int | None = None


@dataclass(frozen=True)
class Block:
    """Ledger block header subset. timestamp is in seconds."""

    number: int
    timestamp: int


@dataclass(frozen=True)
class AppealJurorInfo:
    """Juror-side data for one appeal round."""

    created_at: int | None
    fee: int
    draws: tuple[int, ...]
    can_rule: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "createdAt": self.created_at,
            "fee": self.fee,
            "draws": list(self.draws),
            "canRule": self.can_rule,
        }


@dataclass(frozen=True)
class AppealRulingInfo:
    """Ruling-side data for one appeal round."""

    vote_counter: Any
    deadline: int | None
    ruled_at: int | None
    ruling: int | None
    can_repartition: bool
    can_execute: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "voteCounter": self.vote_counter,
            "deadline": self.deadline,
            "ruledAt": self.ruled_at,
            "ruling": self.ruling,
            "canRepartition": self.can_repartition,
            "canExecute": self.can_execute,
        }


@dataclass(frozen=True)
class DisputeView:
    """Merged dispute view combining ledger and store data.

    Ledger fields (dispute_state, dispute_status, sessions, vote counters)
    always come from a fresh ledger read. Store fields (description, email,
    net_pnk, appeal timestamps) fall back to empty defaults when the store
    has no record yet.
    """

    # Arbitrable contract data
    arbitrable_contract_address: str
    arbitrable_contract_status: int
    arbitrator_address: str
    party_a: str
    party_b: str

    # Dispute data
    dispute_id: int
    first_session: int
    last_session: int
    number_of_appeals: int
    dispute_state: DisputeState
    dispute_status: DisputeStatus
    appeal_juror: tuple[AppealJurorInfo, ...]
    appeal_rulings: tuple[AppealRulingInfo, ...]

    # Store data
    description: str | None = None
    email: str | None = None
    evidence: tuple[dict[str, Any], ...] = ()
    net_pnk: int = 0
    appeal_created_at: list[Any] = field(default_factory=list)
    appeal_deadlines: list[Any] = field(default_factory=list)
    appeal_ruled_at: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys UI collaborators expect."""
        return {
            "arbitrableContractAddress": self.arbitrable_contract_address,
            "arbitrableContractStatus": self.arbitrable_contract_status,
            "arbitratorAddress": self.arbitrator_address,
            "partyA": self.party_a,
            "partyB": self.party_b,
            "disputeId": self.dispute_id,
            "firstSession": self.first_session,
            "lastSession": self.last_session,
            "numberOfAppeals": self.number_of_appeals,
            "disputeState": int(self.dispute_state),
            "disputeStatus": int(self.dispute_status),
            "appealJuror": [j.to_dict() for j in self.appeal_juror],
            "appealRulings": [r.to_dict() for r in self.appeal_rulings],
            "description": self.description,
            "email": self.email,
            "evidence": list(self.evidence),
            "netPNK": self.net_pnk,
            "appealCreatedAt": list(self.appeal_created_at),
            "appealDeadlines": list(self.appeal_deadlines),
            "appealRuledAt": list(self.appeal_ruled_at),
        }
