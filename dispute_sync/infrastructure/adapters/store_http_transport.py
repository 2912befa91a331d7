"""HTTP transport for the metadata store.

Implements StoreTransportPort over an httpx AsyncClient. Bodies are JSON.
Writes carry the credential as a bearer Authorization header; a write with
no credential set fails with AuthRequiredError before any request is sent.

Status mapping:
    2xx            -> StoreResponse(status, decoded body)
    404 on GET     -> StoreResponse(404, None), the record is absent
    401            -> InvalidAuthTokenError
    anything else  -> RequestFailedError
    httpx errors   -> RequestFailedError (chained)
"""

from __future__ import annotations

from typing import Any

import httpx
from structlog import get_logger

from dispute_sync.application.ports.store_transport import (
    StoreResponse,
    StoreTransportPort,
)
from dispute_sync.domain.errors import (
    AuthRequiredError,
    InvalidAuthTokenError,
    RequestFailedError,
)

log = get_logger()

DEFAULT_TIMEOUT_SECONDS = 30.0

_WRITE_VERBS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class StoreHttpTransport(StoreTransportPort):
    """httpx-backed store transport.

    Usage:
        transport = StoreHttpTransport("https://store.example.com")
        transport.set_auth_token(token)
        response = await transport.request("GET", f"/{address}")
        await transport.aclose()

    Args:
        base_uri: Store base URI.
        timeout_seconds: Per-request timeout.
        auth_token: Optional initial credential.
        client: Optional preconfigured client. When given, the transport
            does not close it.
    """

    def __init__(
        self,
        base_uri: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        auth_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_uri = base_uri.rstrip("/")
        self._auth_token = auth_token or None
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._base_uri, timeout=timeout_seconds
        )

    @property
    def base_uri(self) -> str:
        return self._base_uri

    def set_auth_token(self, token: str | None) -> None:
        self._auth_token = token or None

    @property
    def has_auth_token(self) -> bool:
        return self._auth_token is not None

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> StoreHttpTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def request(self, verb: str, path: str, body: Any = None) -> StoreResponse:
        verb = verb.upper()
        headers = {"Accept": "application/json"}
        if verb in _WRITE_VERBS:
            if self._auth_token is None:
                raise AuthRequiredError()
            headers["Authorization"] = f"Bearer {self._auth_token}"

        try:
            response = await self._client.request(
                verb,
                path,
                json=body if verb in _WRITE_VERBS else None,
                headers=headers,
            )
        except httpx.RequestError as e:
            log.warning(
                "store_request_error",
                verb=verb,
                path=path,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise RequestFailedError(
                f"{verb} {path} failed: {e}", detail=str(e)
            ) from e

        status = response.status_code
        decoded = _decode_body(response)

        if status == 401:
            raise InvalidAuthTokenError(decoded)
        if status == 404 and verb == "GET":
            return StoreResponse(status=status, body=None)
        if not 200 <= status < 300:
            log.warning("store_request_rejected", verb=verb, path=path, status=status)
            raise RequestFailedError(
                f"{verb} {path} returned {status}", status_code=status, detail=decoded
            )
        return StoreResponse(status=status, body=decoded)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
