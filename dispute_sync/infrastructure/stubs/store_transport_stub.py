"""In-memory metadata store for testing.

Emulates the store's resource paths over a dict of profile documents,
including credential checks on writes. Every write answers 201 with the
full updated profile document, as the store does.

Developer Golden Rules:
1. OPERATION_TRACKING - Records every request for test assertions
2. CONFIGURABLE - Latency, accepted tokens and failing paths can be set
3. ISOLATION - Documents are deep-copied in and out
"""

from __future__ import annotations

import asyncio
import copy
import itertools
from typing import Any

from dispute_sync.application.ports.store_transport import (
    StoreResponse,
    StoreTransportPort,
)
from dispute_sync.domain.errors import (
    AuthRequiredError,
    InvalidAuthTokenError,
    RequestFailedError,
)


class InMemoryStoreTransport(StoreTransportPort):
    """Dict-backed store transport.

    Usage:
        store = InMemoryStoreTransport(auth_token="token")
        store.seed_profile({"address": "0xuser", "disputes": []})
        response = await store.request("GET", "/0xuser")

    Args:
        auth_token: Initial credential.
        accepted_tokens: Tokens the store accepts. None accepts any token.
        latency: Seconds each request sleeps before touching the data.
    """

    def __init__(
        self,
        auth_token: str | None = None,
        accepted_tokens: set[str] | None = None,
        latency: float = 0.0,
    ) -> None:
        self._auth_token = auth_token or None
        self.accepted_tokens = accepted_tokens
        self.latency = latency
        self._profiles: dict[str, dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._failing: dict[tuple[str, str], int] = {}
        self.requests: list[tuple[str, str, Any]] = []

    # Setup helpers

    def seed_profile(self, document: dict[str, Any]) -> None:
        self._profiles[document["address"]] = self._stamp(copy.deepcopy(document))

    def profile(self, address: str) -> dict[str, Any] | None:
        """Raw stored document, including store-managed keys."""
        document = self._profiles.get(address)
        return copy.deepcopy(document) if document is not None else None

    def fail_on(self, verb: str, path: str, status: int = 500) -> None:
        """Make requests for verb and path answer with status."""
        self._failing[(verb.upper(), path)] = status

    def writes(self) -> list[tuple[str, str, Any]]:
        return [r for r in self.requests if r[0] != "GET"]

    def _stamp(self, document: dict[str, Any]) -> dict[str, Any]:
        document.setdefault("_id", f"doc-{next(self._ids)}")
        document.setdefault("created_at", "2018-01-01T00:00:00.000Z")
        return document

    # StoreTransportPort

    def set_auth_token(self, token: str | None) -> None:
        self._auth_token = token or None

    @property
    def has_auth_token(self) -> bool:
        return self._auth_token is not None

    async def request(self, verb: str, path: str, body: Any = None) -> StoreResponse:
        verb = verb.upper()
        self.requests.append((verb, path, copy.deepcopy(body)))
        if verb != "GET":
            if self._auth_token is None:
                raise AuthRequiredError()
            if (
                self.accepted_tokens is not None
                and self._auth_token not in self.accepted_tokens
            ):
                raise InvalidAuthTokenError({"error": "invalid token"})

        if self.latency:
            await asyncio.sleep(self.latency)

        failing_status = self._failing.get((verb, path))
        if failing_status is not None:
            raise RequestFailedError(
                f"{verb} {path} returned {failing_status}", status_code=failing_status
            )

        parts = [p for p in path.split("/") if p]
        if not parts:
            raise RequestFailedError(f"{verb} {path} returned 404", status_code=404)
        address, rest = parts[0], parts[1:]

        if verb == "GET":
            return self._get(address, rest)
        return self._write(verb, path, address, rest, copy.deepcopy(body) or {})

    def _get(self, address: str, rest: list[str]) -> StoreResponse:
        if rest == ["authToken"]:
            return StoreResponse(200, {"unsignedToken": f"unsigned-{address}"})
        if rest:
            return StoreResponse(404, None)
        document = self._profiles.get(address)
        if document is None:
            return StoreResponse(404, None)
        return StoreResponse(200, copy.deepcopy(document))

    def _write(
        self, verb: str, path: str, address: str, rest: list[str], body: dict[str, Any]
    ) -> StoreResponse:
        if rest == ["authToken", "verify"]:
            return StoreResponse(201, {})

        if not rest:
            current = self._profiles.get(address, {})
            document = {**current, **body, "address": address}
            self._profiles[address] = self._stamp(document)
            return StoreResponse(201, copy.deepcopy(document))

        document = self._profiles.get(address)
        if document is None:
            raise RequestFailedError(f"{verb} {path} returned 404", status_code=404)

        if len(rest) == 4 and rest[0] == "arbitrators" and rest[2] == "disputes":
            self._upsert(
                document.setdefault("disputes", []),
                lambda d: d.get("arbitratorAddress") == rest[1]
                and str(d.get("disputeId")) == rest[3],
                body,
            )
        elif len(rest) == 2 and rest[0] == "contracts":
            self._upsert(
                document.setdefault("contracts", []),
                lambda c: c.get("address") == rest[1],
                {**body, "address": rest[1]},
            )
        elif len(rest) == 3 and rest[0] == "contracts" and rest[2] == "evidence":
            contracts = document.setdefault("contracts", [])
            for contract in contracts:
                if contract.get("address") == rest[1]:
                    break
            else:
                contract = {"address": rest[1]}
                contracts.append(contract)
            contract.setdefault("evidences", []).append(body)
        elif len(rest) == 2 and rest[0] == "notifications":
            document.setdefault("notifications", []).append({**body, "txHash": rest[1]})
        else:
            raise RequestFailedError(f"{verb} {path} returned 404", status_code=404)

        return StoreResponse(201, copy.deepcopy(document))

    @staticmethod
    def _upsert(entries: list[dict[str, Any]], matches: Any, body: dict[str, Any]) -> None:
        for index, entry in enumerate(entries):
            if matches(entry):
                entries[index] = {**body, "_id": entry.get("_id", f"sub-{index}")}
                return
        entries.append({**body, "_id": f"sub-{len(entries)}"})
