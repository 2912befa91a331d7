"""Dispute reconciliation service.

Merges ledger dispute data with store-held juror, evidence and bookkeeping
data into one DisputeView, and folds ledger events into store records.

Source of truth:
- Ledger: dispute state and status, sessions, period, vote counters,
  rulings, can-rule checks.
- Store: appeal timestamps, deadlines, draws, contract description and
  email, net token shift.

A dispute the store has not cached yet is expected. The merge then falls
back to empty store fields; it never fails because store data is missing.

Event handlers (see register_store_update_handlers):
    DisputeCreation -> handle_dispute_created
    TokenShift      -> handle_token_shift
    NewPeriod       -> handle_ruled_at_timestamp, handle_appeal_deadline

Every handler is idempotent: replaying an event writes the same values to
the same appeal round, creation is skipped once the record exists, and a
token shift already listed in applied_shifts is not added again.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Sequence

from structlog import get_logger

from dispute_sync.application.ports.ledger import (
    ArbitrableContractPort,
    ArbitratorLedgerPort,
)
from dispute_sync.application.services.juror_draw_scanner import (
    JurorDraws,
    JurorDrawScanner,
)
from dispute_sync.application.services.ledger_event_dispatcher import (
    EventHandler,
    LedgerEventDispatcher,
)
from dispute_sync.application.services.store_gateway import StoreGateway
from dispute_sync.domain.errors import (
    DisputeNotFoundError,
    ProfileNotFoundError,
    VoteSubmissionFailedError,
)
from dispute_sync.domain.models import (
    AppealJurorInfo,
    AppealRulingInfo,
    ContractMetadata,
    DisputeProfile,
    DisputeRecord,
    DisputeState,
    DisputeView,
    LedgerEvent,
    LedgerEventKind,
    Period,
)
from dispute_sync.domain.services.appeal_rounds import round_value

logger = get_logger()


class DisputeReconciliationService:
    """Reconciles one arbitrator's ledger data with the metadata store.

    All collaborators are required at construction.

    Args:
        ledger: Ledger client for the arbitrator contract.
        arbitrable: Reader for arbitrable contracts.
        store: Store gateway (owns the write queue).
        scanner: Juror draw scanner over the same ledger client.
    """

    def __init__(
        self,
        ledger: ArbitratorLedgerPort,
        arbitrable: ArbitrableContractPort,
        store: StoreGateway,
        scanner: JurorDrawScanner,
    ) -> None:
        self._ledger = ledger
        self._arbitrable = arbitrable
        self._store = store
        self._scanner = scanner

    @property
    def arbitrator_address(self) -> str:
        return self._ledger.get_contract_address()

    # ------------------------------------------------------------------
    # Merged view
    # ------------------------------------------------------------------

    async def get_data_for_dispute(self, dispute_id: int, account: str) -> DisputeView:
        """Build the merged view of a dispute for an account.

        Ledger data is always read fresh. Store data is best effort.

        Raises:
            ChainReadFailedError: If a ledger read fails.
            IndexOutOfRangeError: If the dispute does not exist.
        """
        arbitrator_address = self.arbitrator_address
        dispute, period, session = await asyncio.gather(
            self._ledger.get_dispute(dispute_id),
            self._ledger.get_period(),
            self._ledger.get_session(),
        )

        contract_address = dispute.arbitrable_contract_address
        arbitrable_data, evidence = await asyncio.gather(
            self._arbitrable.get_data(contract_address),
            self._arbitrable.get_evidence(contract_address),
        )
        contract_metadata = await self._get_contract_metadata(
            arbitrable_data.party_a, contract_address
        )
        stored = await self._get_stored_dispute(account, arbitrator_address, dispute_id)

        appeal_draws = list(stored.appeal_draws) if stored else []
        appeal_created_at = list(stored.appeal_created_at) if stored else []
        appeal_deadlines = list(stored.appeal_deadlines) if stored else []
        appeal_ruled_at = list(stored.appeal_ruled_at) if stored else []
        net_pnk = stored.net_pnk if stored else 0

        rounds = await asyncio.gather(
            *(
                self._build_round(
                    dispute,
                    appeal,
                    tuple(round_value(appeal_draws, appeal, ())),
                    account,
                    period,
                    session,
                )
                for appeal in range(dispute.number_of_appeals + 1)
            )
        )

        appeal_juror = []
        appeal_rulings = []
        for appeal, (draws, ruling, can_rule, can_repartition, can_execute) in enumerate(
            rounds
        ):
            appeal_juror.append(
                AppealJurorInfo(
                    created_at=round_value(appeal_created_at, appeal),
                    fee=dispute.arbitration_fee_per_juror * len(draws),
                    draws=draws,
                    can_rule=can_rule,
                )
            )
            appeal_rulings.append(
                AppealRulingInfo(
                    vote_counter=_vote_counter(dispute, appeal),
                    deadline=round_value(appeal_deadlines, appeal),
                    ruled_at=round_value(appeal_ruled_at, appeal),
                    ruling=ruling,
                    can_repartition=can_repartition,
                    can_execute=can_execute,
                )
            )

        return DisputeView(
            arbitrable_contract_address=contract_address,
            arbitrable_contract_status=arbitrable_data.status,
            arbitrator_address=arbitrator_address,
            party_a=arbitrable_data.party_a,
            party_b=arbitrable_data.party_b,
            dispute_id=dispute_id,
            first_session=dispute.first_session,
            last_session=dispute.last_session,
            number_of_appeals=dispute.number_of_appeals,
            dispute_state=dispute.state,
            dispute_status=dispute.status,
            appeal_juror=tuple(appeal_juror),
            appeal_rulings=tuple(appeal_rulings),
            description=contract_metadata.description if contract_metadata else None,
            email=contract_metadata.email if contract_metadata else None,
            evidence=tuple(evidence),
            net_pnk=net_pnk,
            appeal_created_at=appeal_created_at,
            appeal_deadlines=appeal_deadlines,
            appeal_ruled_at=appeal_ruled_at,
        )

    async def _build_round(
        self,
        dispute: DisputeRecord,
        appeal: int,
        draws: tuple[int, ...],
        account: str,
        period: Period,
        session: int,
    ) -> tuple[tuple[int, ...], int, bool, bool, bool]:
        is_last_appeal = dispute.first_session + appeal == dispute.last_session

        ruling_call = self._ledger.current_ruling_for_dispute(dispute.dispute_id, appeal)
        can_rule = False
        if is_last_appeal and draws:
            ruling, can_rule = await asyncio.gather(
                ruling_call,
                self._ledger.can_rule_dispute(dispute.dispute_id, draws, account),
            )
        else:
            ruling = await ruling_call

        can_repartition = False
        can_execute = False
        if is_last_appeal:
            can_repartition = (
                dispute.last_session <= int(session)
                and period == Period.EXECUTE
                and dispute.state == DisputeState.OPEN
            )
            can_execute = dispute.state == DisputeState.EXECUTABLE

        return draws, ruling, bool(can_rule), can_repartition, can_execute

    async def _get_contract_metadata(
        self, party_a: str, contract_address: str
    ) -> ContractMetadata | None:
        try:
            return await self._store.get_contract_metadata(party_a, contract_address)
        except ProfileNotFoundError:
            return None

    async def _get_stored_dispute(
        self, account: str, arbitrator_address: str, dispute_id: int
    ) -> DisputeProfile | None:
        try:
            return await self._store.get_dispute_data(
                account, arbitrator_address, dispute_id
            )
        except (ProfileNotFoundError, DisputeNotFoundError):
            logger.debug(
                "dispute_not_cached",
                account=account,
                arbitrator_address=arbitrator_address,
                dispute_id=dispute_id,
            )
            return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_dispute_from_store(
        self, dispute_id: int, account: str
    ) -> DisputeProfile | None:
        """The account's stored record of a dispute, if any."""
        return await self._get_stored_dispute(account, self.arbitrator_address, dispute_id)

    async def get_disputes_for_user(self, account: str) -> list[DisputeView]:
        """Merged views of every dispute stored for the account.

        During the vote period of a session the account has not synced yet,
        the ledger is scanned for the account's new draws first; they are
        recorded in the store and the profile's session is advanced.
        """
        arbitrator_address = self.arbitrator_address
        period, session = await asyncio.gather(
            self._ledger.get_period(), self._ledger.get_session()
        )
        profile = await self._store.set_up_user_profile(account)

        if period == Period.VOTE and profile.session != session:
            found = await self._scanner.find_juror_draws(arbitrator_address, account)
            await asyncio.gather(
                *(self._record_juror_draws(account, arbitrator_address, d) for d in found)
            )
            await self._store.update_user_profile(account, {"session": session})
            logger.info(
                "juror_session_synced",
                account=account,
                session=session,
                disputes=len(found),
            )

        stored = await self._store.list_disputes_for_user(account)
        dispute_ids = [
            d.dispute_id for d in stored if d.arbitrator_address == arbitrator_address
        ]
        views = await asyncio.gather(
            *(self.get_data_for_dispute(dispute_id, account) for dispute_id in dispute_ids)
        )
        return list(views)

    def _record_juror_draws(
        self, account: str, arbitrator_address: str, found: JurorDraws
    ) -> asyncio.Future[DisputeProfile | None]:
        return self._store.fill_appeal_round(
            account,
            arbitrator_address,
            found.dispute_id,
            "appeal_draws",
            found.number_of_appeals,
            list(found.draws),
            extra_fields={
                "contract_address": found.arbitrable_contract_address,
                "votes": list(found.draws),
                "is_juror": True,
            },
        )

    async def submit_votes_for_dispute(
        self,
        dispute_id: int,
        ruling: int,
        draws: Sequence[int],
        account: str,
    ) -> str:
        """Submit the account's votes, then mark the dispute as ruled.

        Returns:
            The vote transaction hash.

        Raises:
            VoteSubmissionFailedError: If the ledger returns no transaction.
        """
        tx_hash = await self._ledger.submit_votes(dispute_id, ruling, draws, account)
        if not tx_hash:
            raise VoteSubmissionFailedError(dispute_id, account)

        await self._store.set_up_user_profile(account)
        await self._store.update_dispute_profile(
            account,
            self.arbitrator_address,
            dispute_id,
            {"votes": list(draws), "is_juror": True, "has_ruled": True},
        )
        logger.info(
            "votes_submitted",
            account=account,
            dispute_id=dispute_id,
            ruling=ruling,
            tx_hash=tx_hash,
        )
        return tx_hash

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def store_update_handlers(self) -> Mapping[LedgerEventKind, tuple[EventHandler, ...]]:
        """Static table of the handlers that keep the store in sync."""
        return {
            LedgerEventKind.DISPUTE_CREATION: (self.handle_dispute_created,),
            LedgerEventKind.TOKEN_SHIFT: (self.handle_token_shift,),
            LedgerEventKind.NEW_PERIOD: (
                self.handle_ruled_at_timestamp,
                self.handle_appeal_deadline,
            ),
        }

    def register_store_update_handlers(
        self, account: str, dispatcher: LedgerEventDispatcher
    ) -> None:
        """Register every store update handler for account."""
        for kind, handlers in self.store_update_handlers().items():
            for handler in handlers:
                dispatcher.register_handler(kind, account, handler)

    async def handle_dispute_created(self, event: LedgerEvent, account: str) -> None:
        """Store a newly created dispute unless it is already stored."""
        dispute_id = event.dispute_id
        arbitrator_address = self.arbitrator_address

        await self._store.set_up_user_profile(account)
        existing = await self._store.get_dispute_profile(
            account, arbitrator_address, dispute_id
        )
        if existing is not None:
            logger.debug(
                "dispute_already_stored", account=account, dispute_id=dispute_id
            )
            return

        view, block = await asyncio.gather(
            self.get_data_for_dispute(dispute_id, account),
            self._ledger.get_block(event.block_number),
        )
        await self._store.fill_appeal_round(
            account,
            arbitrator_address,
            dispute_id,
            "appeal_created_at",
            view.number_of_appeals,
            block.timestamp * 1000,
            extra_fields={
                "contract_address": view.arbitrable_contract_address,
                "party_a": view.party_a,
                "party_b": view.party_b,
                "status": int(view.dispute_status),
            },
        )
        logger.info(
            "dispute_created_stored",
            account=account,
            dispute_id=dispute_id,
            block_number=event.block_number,
        )

    async def handle_token_shift(self, event: LedgerEvent, account: str) -> None:
        """Add a juror's token shift to the stored net_pnk."""
        if event.account != account:
            return

        dispute_id = event.dispute_id
        amount = event.amount
        arbitrator_address = self.arbitrator_address
        try:
            tracked = await self._store.get_dispute_profile(
                account, arbitrator_address, dispute_id
            )
        except ProfileNotFoundError:
            tracked = None
        if tracked is None:
            logger.debug("token_shift_ignored", account=account, dispute_id=dispute_id)
            return

        shift_key = f"{event.tx_hash}:{event.log_index}" if event.tx_hash else None
        already_applied = False

        def add_shift(current: dict[str, Any]) -> dict[str, Any]:
            nonlocal already_applied
            applied = list(current.get("appliedShifts") or [])
            if shift_key is not None:
                if shift_key in applied:
                    already_applied = True
                    return {}
                applied.append(shift_key)
            return {
                "net_pnk": (current.get("netPNK") or 0) + amount,
                "applied_shifts": applied,
            }

        await self._store.update_dispute_profile(
            account, arbitrator_address, dispute_id, add_shift
        )
        if already_applied:
            logger.debug(
                "token_shift_already_applied",
                account=account,
                dispute_id=dispute_id,
                tx_hash=event.tx_hash,
                log_index=event.log_index,
            )
            return
        logger.info(
            "token_shift_stored", account=account, dispute_id=dispute_id, amount=amount
        )

    async def handle_ruled_at_timestamp(self, event: LedgerEvent, account: str) -> None:
        """Record when the current round was ruled, on entry to the appeal period.

        The period is read from the ledger rather than from the event so
        that replayed events from older sessions do nothing.
        """
        period = await self._ledger.get_period()
        if period != Period.APPEAL:
            logger.debug(
                "ruled_at_skipped",
                account=account,
                ledger_period=int(period),
                event_period=event.period,
            )
            return

        dispute_ids = await self._open_tracked_disputes(account)
        if not dispute_ids:
            return
        block = await self._ledger.get_block(event.block_number)
        ruled_at = block.timestamp * 1000
        await asyncio.gather(
            *(
                self._fill_current_round(account, dispute_id, "appeal_ruled_at", ruled_at)
                for dispute_id in dispute_ids
            )
        )
        logger.info(
            "appeal_ruled_at_stored", account=account, dispute_ids=dispute_ids
        )

    async def handle_appeal_deadline(self, event: LedgerEvent, account: str) -> None:
        """Record the current round's deadline, on entry to the vote period."""
        period = await self._ledger.get_period()
        if period != Period.VOTE:
            logger.debug(
                "appeal_deadline_skipped",
                account=account,
                ledger_period=int(period),
                event_period=event.period,
            )
            return

        dispute_ids = await self._open_tracked_disputes(account)
        if not dispute_ids:
            return
        deadline = await self._ledger.get_deadline_for_open_dispute()
        await asyncio.gather(
            *(
                self._fill_current_round(account, dispute_id, "appeal_deadlines", deadline)
                for dispute_id in dispute_ids
            )
        )
        logger.info(
            "appeal_deadline_stored",
            account=account,
            dispute_ids=dispute_ids,
            deadline=deadline,
        )

    async def _open_tracked_disputes(self, account: str) -> list[int]:
        """Open disputes of the current session that the account tracks."""
        arbitrator_address = self.arbitrator_address
        stored, open_disputes = await asyncio.gather(
            self._store.list_disputes_for_user(account),
            self._ledger.get_open_disputes_for_session(),
        )
        tracked = {
            d.dispute_id for d in stored if d.arbitrator_address == arbitrator_address
        }
        return [dispute_id for dispute_id in open_disputes if dispute_id in tracked]

    async def _fill_current_round(
        self, account: str, dispute_id: int, field_name: str, value: Any
    ) -> None:
        dispute = await self._ledger.get_dispute(dispute_id)
        await self._store.fill_appeal_round(
            account,
            self.arbitrator_address,
            dispute_id,
            field_name,
            dispute.number_of_appeals,
            value,
        )


def _vote_counter(dispute: DisputeRecord, appeal: int) -> Any:
    if appeal < len(dispute.vote_counters):
        return dispute.vote_counters[appeal]
    return None
