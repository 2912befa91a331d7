"""Ledger event models.

Events are delivered by the ledger client as (name, args, block) triples.
Dispatch works on the tagged LedgerEventKind rather than on raw names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class LedgerEventKind(str, Enum):
    """Arbitrator events the synchronization engine reacts to."""

    DISPUTE_CREATION = "DisputeCreation"
    TOKEN_SHIFT = "TokenShift"
    NEW_PERIOD = "NewPeriod"

    @classmethod
    def from_name(cls, name: str) -> "LedgerEventKind":
        """Resolve a raw ledger event name.

        Raises:
            ValueError: If the name is not a known event.
        """
        return cls(name)


@dataclass(frozen=True)
class LedgerEvent:
    """A single ledger event log.

    Attributes:
        kind: Which arbitrator event this is.
        block_number: Block the log was emitted in.
        args: Decoded event arguments, keyed by ABI argument name
            (e.g. "_disputeID", "_account", "_amount", "_period").
        tx_hash: Hash of the emitting transaction.
        log_index: Position of the log within the transaction.
    """

    kind: LedgerEventKind
    block_number: int
    args: Mapping[str, Any] = field(default_factory=dict)
    tx_hash: str = ""
    log_index: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", MappingProxyType(dict(self.args)))

    @property
    def ordering_key(self) -> tuple[int, int]:
        """Emission order on the ledger."""
        return (self.block_number, self.log_index)

    @property
    def dispute_id(self) -> int:
        return int(self.args["_disputeID"])

    @property
    def account(self) -> str:
        return str(self.args["_account"])

    @property
    def amount(self) -> int:
        return int(self.args["_amount"])

    @property
    def period(self) -> int | None:
        value = self.args.get("_period")
        return None if value is None else int(value)
