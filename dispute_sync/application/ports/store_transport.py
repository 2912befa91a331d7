"""Port for the metadata store transport.

Resource paths are relative to the store base URI and keyed by user
address:

    /{address}
    /{address}/authToken
    /{address}/authToken/verify
    /{address}/contracts/{contract}
    /{address}/contracts/{contract}/evidence
    /{address}/arbitrators/{arbitrator}/disputes/{dispute_id}
    /{address}/notifications/{tx_hash}

Credential contract:
- GET never requires a credential.
- POST/PUT without a credential raise AuthRequiredError before any I/O.
- A 401 response raises InvalidAuthTokenError.
- Any other non-2xx response raises RequestFailedError, except a 404 on
  GET which is returned as an absent body (status 404, body None).
- Transport failures raise RequestFailedError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StoreResponse:
    """Decoded store response."""

    status: int
    body: Any = None

    @property
    def found(self) -> bool:
        return self.body is not None


class StoreTransportPort(ABC):
    """Low-level request interface to the metadata store."""

    @abstractmethod
    def set_auth_token(self, token: str | None) -> None:
        """Set (or clear) the bearer credential used for writes."""
        ...

    @property
    @abstractmethod
    def has_auth_token(self) -> bool:
        """True when a credential is set."""
        ...

    @abstractmethod
    async def request(
        self, verb: str, path: str, body: Any = None
    ) -> StoreResponse:
        """Send a request and decode the JSON response.

        Args:
            verb: HTTP verb (GET, POST, PUT).
            path: Resource path relative to the store URI.
            body: JSON-serializable request body for writes.

        Returns:
            The decoded response.

        Raises:
            AuthRequiredError: Write attempted without a credential.
            InvalidAuthTokenError: Store answered 401.
            RequestFailedError: Transport error or unexpected status.
        """
        ...
