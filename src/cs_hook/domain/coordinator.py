"""SettlementCoordinator — the two-phase hook between the venue and the core.

Pre-trade (`before_swap`): decode the order reference, validate it against
the caller, the market and the assets the trade direction moves, abort the
trade with InvalidOrder on a false result, then mark (market, sender) active.

Post-trade (`after_swap`): re-check the record against the market and
direction, take the positive output leg of the venue delta, settle the order
(or record the intent execution), clear the active mark and emit one
SETTLEMENT_RESULT event.

Trust boundary: the venue is trusted to call before/after exactly once per
trade and in that order. The coordinator does not check that an after_swap
was preceded by a successful before_swap for the same trade; it only relies
on the record still being pending.
"""

import logging

from src.cs_claim.domain.claims import ClaimBook
from src.cs_common.enums import EventType
from src.cs_common.errors import (
    DeadlineExpiredError,
    InvalidOrderError,
    SlippageExceededError,
    UnauthorizedCallerError,
)
from src.cs_common.events import DomainEvent
from src.cs_crypto.backend import CryptoBackend, require_or_raise
from src.cs_engine.state import ConfidentialState
from src.cs_hook.domain.venue import (
    AFTER_SWAP_SELECTOR,
    BEFORE_SWAP_SELECTOR,
    ORDER_KIND,
    AfterSwapResult,
    BalanceDelta,
    BeforeSwapResult,
    MarketKey,
    SwapParams,
    decode_order_ref,
)
from src.cs_order.domain.store import OrderStore

logger = logging.getLogger(__name__)


class SettlementCoordinator:
    def __init__(
        self,
        state: ConfidentialState,
        fhe: CryptoBackend,
        orders: OrderStore,
        claims: ClaimBook,
        venue_identity: str,
        identity: str,
    ) -> None:
        self._state = state
        self._fhe = fhe
        self._orders = orders
        self._claims = claims
        self._venue = venue_identity
        self._identity = identity
        # Transient per-trade marks; never persisted.
        self._active: set[tuple[str, str]] = set()

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def venue_identity(self) -> str:
        return self._venue

    def is_active(self, market_id: str, sender: str) -> bool:
        return (market_id, sender) in self._active

    def before_swap(
        self, caller: str, sender: str, market: MarketKey, params: SwapParams, hook_data: str
    ) -> BeforeSwapResult:
        self._require_venue(caller)
        kind, record_id = decode_order_ref(hook_data)
        if kind == ORDER_KIND:
            ok = self._orders.validate(
                record_id, sender, market.id, self._identity,
                expected_assets=market.assets_for(params.zero_for_one),
            )
        else:
            ok = self._claims.validate_intent(
                record_id, sender, market.id, params.zero_for_one, self._identity
            )
        if not ok:
            logger.warning(
                "Pre-trade validation failed: %s %s sender=%s market=%s",
                kind, record_id, sender, market.id,
            )
            raise InvalidOrderError(hook_data)

        self._active.add((market.id, sender))
        return BeforeSwapResult(selector=BEFORE_SWAP_SELECTOR)

    def after_swap(
        self,
        caller: str,
        sender: str,
        market: MarketKey,
        params: SwapParams,
        delta: BalanceDelta,
        hook_data: str,
    ) -> AfterSwapResult:
        self._require_venue(caller)
        kind, record_id = decode_order_ref(hook_data)
        output = delta.output_leg(params.zero_for_one)
        try:
            with self._state.atomic() as state:
                self._require_matching_trade(kind, record_id, market, params, hook_data)
                if kind == ORDER_KIND:
                    success = self._orders.settle(record_id, sender, output, self._identity)
                else:
                    success = self._execute_intent(record_id, sender, output)
                state.emit(
                    DomainEvent(
                        EventType.SETTLEMENT_RESULT,
                        market.id,
                        {
                            "market_id": market.id,
                            "identity": sender,
                            "order_ref": hook_data,
                            "success": success,
                        },
                    )
                )
        finally:
            # A failed settlement unwinds the whole trade, pre-trade mark included.
            self._active.discard((market.id, sender))

        logger.info("Post-trade settled: %s %s success=%s", kind, record_id, success)
        return AfterSwapResult(selector=AFTER_SWAP_SELECTOR)

    def _execute_intent(self, intent_id: str, sender: str, output: int) -> bool:
        intent = self._claims.get_intent(intent_id)
        if intent.owner != sender:
            logger.warning("Execution for intent %s by non-owner %s ignored", intent_id, sender)
            return False
        if self._state.clock() >= intent.deadline:
            raise DeadlineExpiredError(intent_id)
        enc_output = self._fhe.encrypt(output)
        require_or_raise(
            self._fhe,
            self._fhe.gte(enc_output, intent.encrypted_min_amount_out),
            SlippageExceededError(intent_id),
        )
        self._claims.record_execution(intent_id, enc_output, self._identity)
        return True

    def _require_matching_trade(
        self, kind: str, record_id: str, market: MarketKey, params: SwapParams, hook_data: str
    ) -> None:
        """The settled record must be the one this market and direction actually traded."""
        if kind == ORDER_KIND:
            order = self._orders.get_order(record_id)
            matches = order.market_id == market.id and order.trades(
                *market.assets_for(params.zero_for_one)
            )
        else:
            intent = self._claims.get_intent(record_id)
            matches = (
                intent.market_id == market.id and intent.zero_for_one == params.zero_for_one
            )
        if not matches:
            logger.warning(
                "Post-trade mismatch: %s %s market=%s zero_for_one=%s",
                kind, record_id, market.id, params.zero_for_one,
            )
            raise InvalidOrderError(hook_data)

    def _require_venue(self, caller: str) -> None:
        if caller != self._venue:
            raise UnauthorizedCallerError(caller)
