"""Sync context for structured logs.

Each delivered ledger event gets its own correlation id, and the account
the handler works for is tracked alongside it. Both live in contextvars so
they follow the handler across awaits and into the tasks it gathers.

Usage:
    with sync_context(account=account):
        await handler(event, account)

    # In structlog configuration
    processors = [..., sync_context_processor, ...]
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator
from uuid import uuid4

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_account: ContextVar[str] = ContextVar("account", default="")


def generate_correlation_id() -> str:
    """Generate a new correlation ID (UUID4)."""
    return str(uuid4())


def get_correlation_id() -> str:
    """Current correlation ID, or an empty string when none is set."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID in the current context."""
    _correlation_id.set(correlation_id)


def get_sync_account() -> str:
    """Account the current context works for, or an empty string."""
    return _account.get()


@contextmanager
def sync_context(
    correlation_id: str | None = None, account: str | None = None
) -> Iterator[str]:
    """Bind a correlation id (and optionally an account) for a block.

    Args:
        correlation_id: Id to bind. A new one is generated when omitted.
        account: Account to bind. The current one is kept when omitted.

    Yields:
        The bound correlation id.
    """
    correlation_id = correlation_id or generate_correlation_id()
    id_token = _correlation_id.set(correlation_id)
    account_token = _account.set(account) if account is not None else None
    try:
        yield correlation_id
    finally:
        if account_token is not None:
            _account.reset(account_token)
        _correlation_id.reset(id_token)


def sync_context_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor adding correlation_id and account to entries.

    Values already present in the entry are not overwritten.
    """
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    account = get_sync_account()
    if account:
        event_dict.setdefault("account", account)
    return event_dict
