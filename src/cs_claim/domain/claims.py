"""ClaimBook — intent / execution / claim split with resealing.

    PENDING ──record_execution──▶ EXECUTED ──claim──▶ CLAIMED

An Execution record exists iff the intent is EXECUTED or CLAIMED. Claiming
reseals the encrypted output for the owner's key exactly once; a second
claim fails. Clients that need the value again must keep the sealed blob.
"""

import logging
from datetime import datetime

from src.cs_claim.domain.guard import ReentrancyGuard
from src.cs_claim.domain.models import Execution, Intent
from src.cs_common.datetime_utils import to_epoch_seconds
from src.cs_common.enums import EventType, IntentStatus
from src.cs_common.errors import (
    AlreadyExecutedError,
    AlreadyExistsError,
    DeadlineExpiredError,
    NotOwnerError,
    SwapNotExecutedError,
    SwapNotFoundError,
)
from src.cs_common.events import DomainEvent
from src.cs_common.id_generator import derive_content_id
from src.cs_crypto.backend import CryptoBackend
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_engine.state import ConfidentialState
from src.cs_hook.domain.binding import HookBinder
from src.cs_hook.domain.venue import MarketKey
from src.cs_ledger.domain.ledger import EncryptedLedger

logger = logging.getLogger(__name__)


def derive_intent_id(
    owner: str,
    market: MarketKey,
    zero_for_one: bool,
    deadline: datetime,
    enc_amount_in: Ciphertext,
    enc_min_out: Ciphertext,
) -> str:
    return derive_content_id(
        [
            owner,
            market.id,
            "1" if zero_for_one else "0",
            str(to_epoch_seconds(deadline)),
            enc_amount_in.handle,
            enc_min_out.handle,
        ]
    )


class ClaimBook:
    def __init__(
        self,
        state: ConfidentialState,
        fhe: CryptoBackend,
        ledger: EncryptedLedger,
        binder: HookBinder,
    ) -> None:
        self._state = state
        self._fhe = fhe
        self._ledger = ledger
        self._binder = binder
        self._claim_guard = ReentrancyGuard("claim")

    def create_intent(
        self,
        owner: str,
        market: MarketKey,
        zero_for_one: bool,
        deadline: datetime,
        enc_amount_in: Ciphertext,
        enc_min_out: Ciphertext,
    ) -> str:
        with self._state.atomic() as state:
            now = state.clock()
            if now >= deadline:
                raise DeadlineExpiredError(f"new intent of {owner}")
            intent_id = derive_intent_id(
                owner, market, zero_for_one, deadline, enc_amount_in, enc_min_out
            )
            if intent_id in state.intents:
                raise AlreadyExistsError(intent_id)

            asset_in, asset_out = market.assets_for(zero_for_one)
            self._ledger.escrow(owner, asset_in, enc_amount_in)
            intent = Intent(
                id=intent_id,
                owner=owner,
                market_id=market.id,
                zero_for_one=zero_for_one,
                asset_in=asset_in,
                asset_out=asset_out,
                deadline=deadline,
                encrypted_amount_in=enc_amount_in,
                encrypted_min_amount_out=enc_min_out,
                status=IntentStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            state.intents[intent_id] = intent
            state.mark_intent(intent_id)
            state.emit(DomainEvent(EventType.INTENT_CREATED, market.id, intent.public_fields()))

        logger.info("Intent created: id=%s owner=%s market=%s", intent_id, owner, market.id)
        return intent_id

    def validate_intent(
        self,
        intent_id: str,
        expected_owner: str,
        expected_market: str,
        zero_for_one: bool,
        caller: str,
    ) -> bool:
        """Read-only pre-trade check, same contract as OrderStore.validate."""
        self._binder.require_coordinator(caller, "validate intents")
        intent = self._state.intents.get(intent_id)
        if intent is None:
            return False
        return (
            intent.owner == expected_owner
            and intent.market_id == expected_market
            and intent.zero_for_one == zero_for_one
            and intent.status == IntentStatus.PENDING
            and self._state.clock() < intent.deadline
        )

    def record_execution(self, intent_id: str, enc_output: Ciphertext, caller: str) -> Execution:
        self._binder.require_coordinator(caller, "record executions")
        with self._state.atomic() as state:
            intent = self.get_intent(intent_id)
            if intent.status != IntentStatus.PENDING:
                raise AlreadyExecutedError(intent_id)
            self._ledger.consume_escrow(intent.owner, intent.asset_in, intent.encrypted_amount_in)

            state.execution_checkpoint += 1
            now = state.clock()
            execution = Execution(
                intent_id=intent_id,
                encrypted_output=enc_output,
                checkpoint=state.execution_checkpoint,
                executed_at=now,
            )
            state.executions[intent_id] = execution
            state.mark_execution(intent_id)
            self._set_status(intent, IntentStatus.EXECUTED, EventType.EXECUTION_RECORDED)

        logger.info("Execution recorded: intent=%s checkpoint=%d", intent_id, execution.checkpoint)
        return execution

    def claim(self, intent_id: str, public_key: str, caller: str) -> bytes:
        """Credit the output to the owner and return it sealed for `public_key`."""
        with self._claim_guard, self._state.atomic():
            intent = self.get_intent(intent_id)
            if caller != intent.owner:
                raise NotOwnerError(caller, intent_id)
            if intent.status != IntentStatus.EXECUTED:
                raise SwapNotExecutedError(intent_id, intent.status.value)
            execution = self._state.executions[intent_id]

            # Status flips before the backend is called back into.
            self._set_status(intent, IntentStatus.CLAIMED, EventType.OUTPUT_CLAIMED)
            self._ledger.credit(intent.owner, intent.asset_out, execution.encrypted_output)
            sealed = self._fhe.reseal(execution.encrypted_output, public_key)

        logger.info("Output claimed: intent=%s", intent_id)
        return sealed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_intent(self, intent_id: str) -> Intent:
        intent = self._state.intents.get(intent_id)
        if intent is None:
            raise SwapNotFoundError(intent_id)
        return intent

    def get_execution(self, intent_id: str) -> Execution | None:
        return self._state.executions.get(intent_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_status(self, intent: Intent, status: IntentStatus, event_type: EventType) -> None:
        intent.status = status
        intent.updated_at = self._state.clock()
        self._state.mark_intent(intent.id)
        self._state.emit(DomainEvent(event_type, intent.market_id, intent.public_fields()))
