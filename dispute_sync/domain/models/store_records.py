"""Store-side record models.

The metadata store speaks camelCase JSON. These pydantic models give typed,
snake_case access to the records while keeping the wire names as aliases so
a record can round-trip through the store without losing unknown keys
(extra="allow").

Store records are authoritative only for data the ledger does not retain:
appeal timestamps, draws, evidence, contact metadata and net token shifts.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Keys the store adds to documents that must not be echoed back on write.
STORE_INTERNAL_KEYS = ("_id", "created_at")


class StoreRecord(BaseModel):
    """Base for store documents.

    Accepts both alias (wire) and field names, and keeps unknown keys.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @model_validator(mode="before")
    @classmethod
    def drop_internal_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return strip_internal_keys(data)
        return data

    @classmethod
    def wire_name(cls, name: str) -> str:
        """Map a snake_case field name to its store key.

        Names that are not model fields are returned unchanged so callers
        can pass store keys directly.
        """
        info = cls.model_fields.get(name)
        if info is not None and info.alias:
            return info.alias
        return name

    @classmethod
    def to_wire_fields(cls, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Translate a partial update into store keys."""
        return {cls.wire_name(key): value for key, value in fields.items()}

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class Evidence(StoreRecord):
    """A piece of evidence submitted for an arbitrable contract."""

    name: str = ""
    description: str = ""
    url: str = ""
    submitted_at: int | None = Field(default=None, alias="submittedAt")


class ContractMetadata(StoreRecord):
    """Per-user metadata about an arbitrable contract."""

    address: str
    description: str | None = None
    email: str | None = None
    evidences: list[Evidence] = Field(default_factory=list)


class Notification(StoreRecord):
    """A notification derived from a ledger event log."""

    tx_hash: str = Field(alias="txHash")
    log_index: int = Field(default=0, alias="logIndex")
    notification_type: int | None = Field(default=None, alias="notificationType")
    read: bool = False
    message: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class DisputeProfile(StoreRecord):
    """A user's stored record of a dispute.

    Keyed by (arbitrator_address, dispute_id), unique per user. The appeal_*
    arrays are indexed by appeal round and only ever filled forward.
    """

    arbitrator_address: str = Field(alias="arbitratorAddress")
    dispute_id: int = Field(alias="disputeId")
    contract_address: str | None = Field(default=None, alias="contractAddress")
    party_a: str | None = Field(default=None, alias="partyA")
    party_b: str | None = Field(default=None, alias="partyB")
    status: int | None = None
    net_pnk: int = Field(default=0, alias="netPNK")
    votes: list[int] = Field(default_factory=list)
    is_juror: bool = Field(default=False, alias="isJuror")
    has_ruled: bool = Field(default=False, alias="hasRuled")
    appeal_draws: list[Any] = Field(default_factory=list, alias="appealDraws")
    appeal_created_at: list[Any] = Field(default_factory=list, alias="appealCreatedAt")
    appeal_deadlines: list[Any] = Field(default_factory=list, alias="appealDeadlines")
    appeal_ruled_at: list[Any] = Field(default_factory=list, alias="appealRuledAt")
    # "txHash:logIndex" of every token shift folded into net_pnk.
    applied_shifts: list[str] = Field(default_factory=list, alias="appliedShifts")

    def matches(self, arbitrator_address: str, dispute_id: int) -> bool:
        return (
            self.arbitrator_address == arbitrator_address
            and self.dispute_id == dispute_id
        )


class UserProfile(StoreRecord):
    """Top-level store document for a user address."""

    address: str
    session: int | None = None
    last_block: int | None = Field(default=None, alias="lastBlock")
    disputes: list[DisputeProfile] = Field(default_factory=list)
    contracts: list[ContractMetadata] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)

    def find_dispute(
        self, arbitrator_address: str, dispute_id: int
    ) -> DisputeProfile | None:
        for dispute in self.disputes:
            if dispute.matches(arbitrator_address, dispute_id):
                return dispute
        return None

    def find_contract(self, contract_address: str) -> ContractMetadata | None:
        for contract in self.contracts:
            if contract.address == contract_address:
                return contract
        return None


def strip_internal_keys(document: dict[str, Any]) -> dict[str, Any]:
    """Drop store-managed keys before a document is written back."""
    return {k: v for k, v in document.items() if k not in STORE_INTERNAL_KEYS}
