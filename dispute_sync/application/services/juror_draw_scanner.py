"""Juror draw scanner.

Finds the disputes of the current session in which an account holds juror
draw slots. The ledger offers no per-juror index, so the scan walks dispute
indices from 0 upwards:

    index 0, 1, 2, ...
      -> stop on NULL_ADDRESS or IndexOutOfRangeError (end of the list)
      -> skip disputes whose last session is not the current session
      -> read the account's draw slots, keep the dispute if any

The scan is O(total disputes). A count hint (max_disputes) bounds it when
the caller knows the dispute count; the sentinel rule still applies.

Only the two end-of-list signals end the scan. Any other ledger read
failure (ChainReadFailedError) propagates to the caller; it is never read
as the end of the list.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from structlog import get_logger

from dispute_sync.application.ports.ledger import ArbitratorLedgerPort
from dispute_sync.domain.errors import IndexOutOfRangeError, NotConfiguredError

logger = get_logger()


@dataclass(frozen=True)
class JurorDraws:
    """Draw slots an account holds in one dispute."""

    dispute_id: int
    arbitrable_contract_address: str
    number_of_appeals: int
    draws: tuple[int, ...]


class JurorDrawScanner:
    """Linear scan of ledger disputes for an account's juror draws.

    Args:
        ledger: Ledger client bound to one arbitrator contract.
        max_disputes: Optional upper bound on indices to scan.
    """

    def __init__(self, ledger: ArbitratorLedgerPort, max_disputes: int | None = None) -> None:
        self._ledger = ledger
        self._max_disputes = max_disputes

    async def get_draws_for_juror(self, dispute_id: int, account: str) -> tuple[int, ...]:
        """Juror slots (1-based) the account holds in a dispute."""
        number_of_jurors = await self._ledger.get_amount_of_jurors_for_dispute(dispute_id)
        slots = range(1, number_of_jurors + 1)
        drawn = await asyncio.gather(
            *(
                self._ledger.is_juror_drawn_for_dispute(dispute_id, draw, account)
                for draw in slots
            )
        )
        return tuple(draw for draw, is_drawn in zip(slots, drawn) if is_drawn)

    async def find_juror_draws(
        self, arbitrator_address: str, account: str
    ) -> list[JurorDraws]:
        """Scan the ledger for current-session disputes the account is drawn in.

        Raises:
            NotConfiguredError: If arbitrator_address is not the contract
                this scanner's ledger client is bound to.
            ChainReadFailedError: If reading the current session fails.
        """
        bound_address = self._ledger.get_contract_address()
        if arbitrator_address != bound_address:
            raise NotConfiguredError(
                f"No ledger client for arbitrator {arbitrator_address} "
                f"(bound to {bound_address})"
            )

        current_session = await self._ledger.get_session()
        found: list[JurorDraws] = []
        dispute_id = 0
        while self._max_disputes is None or dispute_id < self._max_disputes:
            try:
                dispute = await self._ledger.get_dispute(dispute_id)
            except IndexOutOfRangeError:
                break
            if dispute.is_null:
                break

            if dispute.last_session == current_session:
                draws = await self.get_draws_for_juror(dispute_id, account)
                if draws:
                    found.append(
                        JurorDraws(
                            dispute_id=dispute_id,
                            arbitrable_contract_address=dispute.arbitrable_contract_address,
                            number_of_appeals=dispute.number_of_appeals,
                            draws=draws,
                        )
                    )
            dispute_id += 1

        logger.info(
            "juror_draw_scan_complete",
            arbitrator_address=arbitrator_address,
            account=account,
            session=current_session,
            scanned=dispute_id,
            matches=len(found),
        )
        return found

    async def get_dispute_contracts_for_juror(
        self, arbitrator_address: str, account: str
    ) -> list[str]:
        """Arbitrable contract addresses of the account's current disputes."""
        draws = await self.find_juror_draws(arbitrator_address, account)
        return [d.arbitrable_contract_address for d in draws]
