"""Store gateway: typed operations over the metadata store.

Every mutating operation is a single queued read-modify-write:

    fetch current record (absence = empty)
      -> shallow-merge supplied fields over it (supplied fields win)
      -> write the merged record

The read happens inside the queued operation, so no other queued write can
land between it and the write. Write methods return the queue's future at
call time; the call order is the commit order.

Appeal-round arrays are the one exception to "supplied fields win": they
are merged slot by slot so an update can never shorten them or clear a
slot that already holds a value.

Reads are not queued. A caller that must observe its own prior write uses
queue_read_profile.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Mapping, Union

from structlog import get_logger

from dispute_sync.application.ports.store_transport import (
    StoreResponse,
    StoreTransportPort,
)
from dispute_sync.application.services.ordered_write_queue import OrderedWriteQueue
from dispute_sync.domain.errors import (
    AuthRequiredError,
    DisputeNotFoundError,
    InvalidAuthTokenError,
    NotificationNotFoundError,
    ProfileNotFoundError,
    RequestFailedError,
)
from dispute_sync.domain.models import (
    ContractMetadata,
    DisputeProfile,
    Evidence,
    Notification,
    UserProfile,
)
from dispute_sync.domain.models.store_records import strip_internal_keys
from dispute_sync.domain.services.appeal_rounds import fill_round, merge_rounds

logger = get_logger()

APPEAL_ROUND_KEYS = frozenset(
    {"appealDraws", "appealCreatedAt", "appealDeadlines", "appealRuledAt"}
)

# A partial update, or a function computing one from the current record.
FieldsOrFn = Union[Mapping[str, Any], Callable[[dict[str, Any]], Mapping[str, Any]]]


def _now_ms() -> int:
    return int(time.time() * 1000)


class StoreGateway:
    """Typed client for one metadata store connection.

    Args:
        transport: Store transport adapter.
        queue: Write serializer owned by this gateway. One per connection,
            never shared between gateways.
    """

    def __init__(self, transport: StoreTransportPort, queue: OrderedWriteQueue) -> None:
        self._transport = transport
        self._queue = queue

    @property
    def queue(self) -> OrderedWriteQueue:
        return self._queue

    @property
    def transport(self) -> StoreTransportPort:
        return self._transport

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def set_auth_token(self, token: str | None) -> None:
        """Set the credential used for writes."""
        self._transport.set_auth_token(token)

    async def new_auth_token(self, address: str) -> Any:
        """Request a new unsigned auth token for address."""
        response = await self._transport.request("GET", f"/{address}/authToken")
        return response.body

    async def is_token_valid(self, address: str, token: str | None = None) -> bool:
        """Check a credential against the store.

        Args:
            address: User address the token was issued for.
            token: Optional token to set before verifying.

        Returns:
            True when the store accepts the token.
        """
        if token:
            self.set_auth_token(token)
        try:
            response = await self._transport.request(
                "POST", f"/{address}/authToken/verify", {}
            )
        except (AuthRequiredError, InvalidAuthTokenError, RequestFailedError) as e:
            logger.info("auth_token_rejected", address=address, reason=str(e))
            return False
        return response.status == 201

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _get_profile_document(self, address: str) -> dict[str, Any] | None:
        response = await self._transport.request("GET", f"/{address}")
        return response.body if isinstance(response.body, dict) else None

    async def get_user_profile(self, address: str) -> UserProfile | None:
        """Fetch the stored profile, or None when the user has none."""
        document = await self._get_profile_document(address)
        if document is None:
            return None
        return UserProfile.model_validate(document)

    async def _require_profile(self, address: str) -> UserProfile:
        profile = await self.get_user_profile(address)
        if profile is None:
            raise ProfileNotFoundError(address)
        return profile

    async def get_contract_metadata(
        self, address: str, contract_address: str
    ) -> ContractMetadata | None:
        """Fetch the user's metadata for a contract.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        profile = await self._require_profile(address)
        return profile.find_contract(contract_address)

    async def get_dispute_profile(
        self, address: str, arbitrator_address: str, dispute_id: int
    ) -> DisputeProfile | None:
        """Fetch the user's record of a dispute, or None if not tracked.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        profile = await self._require_profile(address)
        return profile.find_dispute(arbitrator_address, dispute_id)

    async def get_dispute_data(
        self, address: str, arbitrator_address: str, dispute_id: int
    ) -> DisputeProfile:
        """Fetch the user's record of a dispute, which must exist.

        Raises:
            ProfileNotFoundError: If the user has no profile.
            DisputeNotFoundError: If the dispute is not tracked for the user.
        """
        dispute = await self.get_dispute_profile(address, arbitrator_address, dispute_id)
        if dispute is None:
            raise DisputeNotFoundError(address, arbitrator_address, dispute_id)
        return dispute

    async def list_disputes_for_user(self, address: str) -> list[DisputeProfile]:
        """All disputes stored for the user ([] when there is no profile)."""
        profile = await self.get_user_profile(address)
        if profile is None:
            return []
        return list(profile.disputes)

    async def get_last_block(self, address: str) -> int:
        """Event-replay watermark for the user (0 when unset).

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        profile = await self._require_profile(address)
        return profile.last_block or 0

    def queue_read_profile(self, address: str) -> asyncio.Future[UserProfile | None]:
        """Read the profile after every write queued so far has committed."""

        async def read() -> UserProfile | None:
            return await self.get_user_profile(address)

        return self._queue.enqueue(read)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _queue_write(
        self,
        path: str,
        build_body: Callable[[], Awaitable[Any]],
        parse: Callable[[StoreResponse], Any],
        verb: str = "POST",
    ) -> asyncio.Future[Any]:
        async def operation() -> Any:
            body = await build_body()
            response = await self._transport.request(verb, path, body)
            return parse(response)

        return self._queue.enqueue(operation)

    def update_user_profile(
        self, address: str, fields: FieldsOrFn | None = None
    ) -> asyncio.Future[UserProfile | None]:
        """Merge fields into the user's profile, creating it if absent.

        Intended for scalar fields such as session and last_block. Supplying
        a list here replaces the stored list.
        """

        async def build_body() -> dict[str, Any]:
            current = strip_internal_keys(await self._get_profile_document(address) or {})
            supplied = fields(current) if callable(fields) else (fields or {})
            merged = {**current, **UserProfile.to_wire_fields(supplied)}
            merged["address"] = address
            return merged

        return self._queue_write(f"/{address}", build_body, _parse_profile)

    def advance_last_block(
        self, address: str, block_number: int
    ) -> asyncio.Future[UserProfile | None]:
        """Raise the user's replay watermark to block_number.

        The comparison runs on the record read inside the queued operation,
        so a lower block never replaces a higher one.
        """

        def advance(current: dict[str, Any]) -> dict[str, Any]:
            return {"last_block": max(current.get("lastBlock") or 0, block_number)}

        return self.update_user_profile(address, advance)

    async def set_up_user_profile(self, address: str) -> UserProfile:
        """Return the user's profile, creating an empty one if absent."""
        profile = await self.get_user_profile(address)
        if profile is not None:
            return profile
        written = self.update_user_profile(address, {})
        created = await self.queue_read_profile(address)
        await written
        if created is None:
            raise ProfileNotFoundError(address)
        logger.info("user_profile_created", address=address)
        return created

    def update_dispute_profile(
        self,
        address: str,
        arbitrator_address: str,
        dispute_id: int,
        fields: FieldsOrFn,
    ) -> asyncio.Future[DisputeProfile | None]:
        """Upsert the user's record of a dispute.

        fields may be a callable; it receives the current record (an empty
        dict when the dispute is not yet tracked) inside the queued read
        phase and returns the partial update.

        Raises (through the future):
            ProfileNotFoundError: If the user has no profile.
        """

        async def build_body() -> dict[str, Any]:
            document = await self._get_profile_document(address)
            if document is None:
                raise ProfileNotFoundError(address)
            current: dict[str, Any] = {}
            for entry in document.get("disputes") or []:
                if (
                    entry.get("arbitratorAddress") == arbitrator_address
                    and entry.get("disputeId") == dispute_id
                ):
                    current = strip_internal_keys(dict(entry))
                    break
            supplied = DisputeProfile.to_wire_fields(
                fields(dict(current)) if callable(fields) else fields
            )
            merged = {**current, **supplied}
            for key in APPEAL_ROUND_KEYS & supplied.keys():
                merged[key] = merge_rounds(current.get(key), supplied[key])
            merged["disputeId"] = dispute_id
            merged["arbitratorAddress"] = arbitrator_address
            return merged

        def parse(response: StoreResponse) -> DisputeProfile | None:
            profile = _parse_profile(response)
            if profile is None:
                return None
            return profile.find_dispute(arbitrator_address, dispute_id)

        return self._queue_write(
            f"/{address}/arbitrators/{arbitrator_address}/disputes/{dispute_id}",
            build_body,
            parse,
        )

    def fill_appeal_round(
        self,
        address: str,
        arbitrator_address: str,
        dispute_id: int,
        field_name: str,
        index: int,
        value: Any,
        extra_fields: Mapping[str, Any] | None = None,
    ) -> asyncio.Future[DisputeProfile | None]:
        """Set one slot of an appeal-round array on the user's dispute.

        The slot is filled against the record read inside the queued
        operation, so concurrent fills of different rounds or arrays cannot
        overwrite each other.
        """
        key = DisputeProfile.wire_name(field_name)
        if key not in APPEAL_ROUND_KEYS:
            raise ValueError(f"{field_name} is not an appeal round array")

        def compute(current: dict[str, Any]) -> dict[str, Any]:
            update = dict(extra_fields or {})
            update[key] = fill_round(current.get(key), index, value)
            return update

        return self.update_dispute_profile(address, arbitrator_address, dispute_id, compute)

    def update_contract_metadata(
        self,
        address: str,
        contract_address: str,
        fields: FieldsOrFn,
    ) -> asyncio.Future[ContractMetadata | None]:
        """Merge fields into the user's metadata for a contract.

        Raises (through the future):
            ProfileNotFoundError: If the user has no profile.
            RequestFailedError: If the store does not answer 201.
        """

        async def build_body() -> dict[str, Any]:
            document = await self._get_profile_document(address)
            if document is None:
                raise ProfileNotFoundError(address)
            current: dict[str, Any] = {}
            for entry in document.get("contracts") or []:
                if entry.get("address") == contract_address:
                    current = strip_internal_keys(dict(entry))
                    break
            supplied = fields(dict(current)) if callable(fields) else fields
            merged = {**current, **ContractMetadata.to_wire_fields(supplied)}
            merged["address"] = contract_address
            return merged

        def parse(response: StoreResponse) -> ContractMetadata | None:
            if response.status != 201:
                raise RequestFailedError(
                    f"Contract update for {contract_address} was not accepted",
                    status_code=response.status,
                    detail=response.body,
                )
            profile = _parse_profile(response)
            return profile.find_contract(contract_address) if profile else None

        return self._queue_write(
            f"/{address}/contracts/{contract_address}", build_body, parse
        )

    def add_evidence(
        self,
        contract_address: str,
        address: str,
        name: str,
        description: str,
        url: str,
    ) -> asyncio.Future[Evidence]:
        """Add evidence to the user's copy of a contract.

        Only the submitting user's record is updated, not every party's.
        """
        evidence = Evidence(
            name=name, description=description, url=url, submitted_at=_now_ms()
        )

        async def build_body() -> dict[str, Any]:
            return evidence.to_wire()

        return self._queue_write(
            f"/{address}/contracts/{contract_address}/evidence",
            build_body,
            lambda _response: evidence,
        )

    def create_notification(
        self,
        address: str,
        tx_hash: str,
        log_index: int,
        notification_type: int,
        message: str = "",
        data: Mapping[str, Any] | None = None,
        read: bool = False,
    ) -> asyncio.Future[Notification]:
        """Store a notification keyed by (tx_hash, log_index)."""
        notification = Notification(
            tx_hash=tx_hash,
            log_index=log_index,
            notification_type=notification_type,
            message=message,
            data=dict(data or {}),
            read=read,
        )

        async def build_body() -> dict[str, Any]:
            body = notification.to_wire()
            body.pop("txHash")
            return body

        return self._queue_write(
            f"/{address}/notifications/{tx_hash}",
            build_body,
            lambda _response: notification,
        )

    def mark_notification_read(
        self,
        address: str,
        tx_hash: str,
        log_index: int,
        is_read: bool = True,
    ) -> asyncio.Future[UserProfile | None]:
        """Set the read flag of a stored notification.

        Raises (through the future):
            ProfileNotFoundError: If the user has no profile.
            NotificationNotFoundError: If no such notification is stored.
        """

        async def build_body() -> dict[str, Any]:
            document = await self._get_profile_document(address)
            if document is None:
                raise ProfileNotFoundError(address)
            document = strip_internal_keys(document)
            notifications = [dict(n) for n in document.get("notifications") or []]
            for notification in notifications:
                if (
                    notification.get("txHash") == tx_hash
                    and notification.get("logIndex") == log_index
                ):
                    notification["read"] = is_read
                    break
            else:
                raise NotificationNotFoundError(tx_hash, log_index)
            document["notifications"] = notifications
            return document

        return self._queue_write(f"/{address}", build_body, _parse_profile)


def _parse_profile(response: StoreResponse) -> UserProfile | None:
    if isinstance(response.body, dict) and "address" in response.body:
        return UserProfile.model_validate(response.body)
    return None
