"""Ledger event dispatcher.

Delivers ledger events to handlers bound to an account context.

Registration model:
    The table maps LedgerEventKind -> tuple of (account, handler) bindings.
    It is built during setup; each registration replaces the tuple rather
    than mutating it, so a delivery in progress always iterates a stable
    snapshot.

Delivery guarantees:
- Each dispatched event reaches every handler registered for its kind once.
- Handlers for one event run concurrently (fan-out).
- dispatch() returns only after all handlers for the event finished, so a
  caller dispatching events one after another gives every handler its
  stream in emission order.
- Already-processed events are not deduplicated. Handlers must be
  idempotent; replaying from a last_block watermark is expected.

Every delivery of one event shares a correlation id; each handler runs in
a sync context bound to its account.

A failing handler does not prevent the others from running. Failures are
logged and returned in the DispatchResult.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable

from structlog import get_logger

from dispute_sync.application.observability import generate_correlation_id, sync_context
from dispute_sync.domain.models import LedgerEvent, LedgerEventKind

logger = get_logger()

EventHandler = Callable[[LedgerEvent, str], Awaitable[Any]]


@dataclass(frozen=True)
class HandlerBinding:
    """A handler bound to the account it updates."""

    account: str
    handler: EventHandler

    @property
    def name(self) -> str:
        return getattr(self.handler, "__name__", repr(self.handler))


@dataclass(frozen=True)
class HandlerFailure:
    """A handler that raised while processing an event."""

    handler_name: str
    account: str
    error: BaseException


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of delivering one event."""

    event: LedgerEvent
    delivered: int
    failures: tuple[HandlerFailure, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return not self.failures


class LedgerEventDispatcher:
    """Fan-out dispatcher keyed by LedgerEventKind."""

    def __init__(self) -> None:
        self._table: dict[LedgerEventKind, tuple[HandlerBinding, ...]] = {}

    def register_handler(
        self,
        kind: LedgerEventKind | str,
        account: str,
        handler: EventHandler,
    ) -> None:
        """Bind handler to an account for one event kind.

        Args:
            kind: Event kind, or its raw ledger name.
            account: Account context passed to the handler on delivery.
            handler: Coroutine function called as handler(event, account).
        """
        if not isinstance(kind, LedgerEventKind):
            kind = LedgerEventKind.from_name(kind)
        binding = HandlerBinding(account=account, handler=handler)
        self._table[kind] = self._table.get(kind, ()) + (binding,)
        logger.debug(
            "ledger_handler_registered",
            event_kind=kind.value,
            account=account,
            handler=binding.name,
        )

    def handlers_for(self, kind: LedgerEventKind) -> tuple[HandlerBinding, ...]:
        """Registered bindings for a kind, in registration order."""
        return self._table.get(kind, ())

    async def dispatch(self, event: LedgerEvent) -> DispatchResult:
        """Deliver one event to every handler registered for its kind."""
        bindings = self.handlers_for(event.kind)
        if not bindings:
            return DispatchResult(event=event, delivered=0)

        correlation_id = generate_correlation_id()
        outcomes = await asyncio.gather(
            *(_deliver(binding, event, correlation_id) for binding in bindings),
            return_exceptions=True,
        )

        failures: list[HandlerFailure] = []
        for binding, outcome in zip(bindings, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.error(
                    "ledger_handler_failed",
                    event_kind=event.kind.value,
                    block_number=event.block_number,
                    tx_hash=event.tx_hash,
                    correlation_id=correlation_id,
                    handler=binding.name,
                    account=binding.account,
                    error_type=type(outcome).__name__,
                    error=str(outcome),
                )
                failures.append(
                    HandlerFailure(
                        handler_name=binding.name,
                        account=binding.account,
                        error=outcome,
                    )
                )

        return DispatchResult(
            event=event, delivered=len(bindings), failures=tuple(failures)
        )

    async def replay(self, events: Iterable[LedgerEvent]) -> list[DispatchResult]:
        """Deliver a batch of events in ledger emission order.

        Events are sorted by (block_number, log_index) and dispatched one at
        a time.
        """
        ordered = sorted(events, key=lambda e: e.ordering_key)
        results = []
        for event in ordered:
            results.append(await self.dispatch(event))
        logger.info(
            "ledger_events_replayed",
            count=len(ordered),
            failed=sum(1 for r in results if not r.succeeded),
        )
        return results


async def _deliver(binding: HandlerBinding, event: LedgerEvent, correlation_id: str) -> Any:
    with sync_context(correlation_id=correlation_id, account=binding.account):
        return await binding.handler(event, binding.account)
