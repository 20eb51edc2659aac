"""Composition root and the synchronous core surface.

Wires one ConfidentialState into the binder, ledger, order store, claim book
and settlement coordinator, and exposes the user-facing and venue-facing
operations. Every mutating operation is one unit of work on the state.
"""

from collections.abc import Callable
from datetime import datetime

from src.cs_claim.domain.claims import ClaimBook
from src.cs_claim.domain.models import Execution, Intent
from src.cs_common.datetime_utils import utc_now
from src.cs_common.id_generator import SnowflakeIdGenerator
from src.cs_crypto.backend import CryptoBackend
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_engine.state import ConfidentialState
from src.cs_hook.domain.binding import HookBinder
from src.cs_hook.domain.coordinator import SettlementCoordinator
from src.cs_hook.domain.venue import (
    AfterSwapResult,
    BalanceDelta,
    BeforeSwapResult,
    MarketKey,
    SwapParams,
)
from src.cs_ledger.domain.ledger import EncryptedLedger
from src.cs_order.domain.models import Order
from src.cs_order.domain.store import OrderStore


class ConfidentialEngine:
    def __init__(
        self,
        fhe: CryptoBackend,
        venue_identity: str,
        coordinator_identity: str,
        admin_identity: str,
        machine_id: int = 0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.state = ConfidentialState(clock)
        self.fhe = fhe
        self.binder = HookBinder(self.state, admin_identity)
        self.ledger = EncryptedLedger(self.state, fhe, self.binder)
        self.orders = OrderStore(
            self.state, fhe, self.ledger, self.binder, SnowflakeIdGenerator(machine_id)
        )
        self.claims = ClaimBook(self.state, fhe, self.ledger, self.binder)
        self.coordinator = SettlementCoordinator(
            self.state,
            fhe,
            self.orders,
            self.claims,
            venue_identity=venue_identity,
            identity=coordinator_identity,
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def bind_coordinator(self, caller: str) -> str:
        self.binder.bind(self.coordinator.identity, caller)
        return self.coordinator.identity

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def deposit_encrypted(self, caller: str, asset: str, enc_amount: Ciphertext) -> None:
        self.ledger.deposit(caller, asset, enc_amount)

    def withdraw_encrypted(self, caller: str, asset: str, enc_amount: Ciphertext) -> None:
        self.ledger.withdraw(caller, asset, enc_amount)

    def get_encrypted_balance(self, caller: str, asset: str, public_key: str) -> bytes:
        return self.ledger.seal_balance(caller, asset, public_key, caller)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def create_order(
        self,
        caller: str,
        market_id: str,
        asset_in: str,
        asset_out: str,
        enc_amount_in: Ciphertext,
        enc_min_out: Ciphertext,
        enc_deadline: Ciphertext | None = None,
        expires_at: datetime | None = None,
    ) -> str:
        return self.orders.create_order(
            caller, market_id, asset_in, asset_out, enc_amount_in, enc_min_out,
            enc_deadline, expires_at,
        )

    def cancel_order(self, caller: str, order_id: str) -> Order:
        return self.orders.cancel(order_id, caller)

    def expire_order(self, order_id: str) -> bool:
        return self.orders.expire(order_id)

    def expire_due_orders(self) -> list[str]:
        return self.orders.expire_due()

    def get_user_orders(self, owner: str) -> list[Order]:
        return self.orders.get_user_orders(owner)

    def get_order(self, order_id: str) -> Order:
        return self.orders.get_order(order_id)

    def get_order_count(self) -> int:
        return self.orders.get_order_count()

    def is_order_active(self, order_id: str) -> bool:
        return self.orders.is_order_active(order_id)

    # ------------------------------------------------------------------
    # Intents / claims
    # ------------------------------------------------------------------

    def create_intent(
        self,
        caller: str,
        market: MarketKey,
        zero_for_one: bool,
        deadline: datetime,
        enc_amount_in: Ciphertext,
        enc_min_out: Ciphertext,
    ) -> str:
        return self.claims.create_intent(
            caller, market, zero_for_one, deadline, enc_amount_in, enc_min_out
        )

    def get_intent(self, intent_id: str) -> tuple[Intent, Execution | None]:
        return self.claims.get_intent(intent_id), self.claims.get_execution(intent_id)

    def claim_swap_output(self, caller: str, intent_id: str, public_key: str) -> bytes:
        return self.claims.claim(intent_id, public_key, caller)

    # ------------------------------------------------------------------
    # Venue callbacks
    # ------------------------------------------------------------------

    def before_swap(
        self, caller: str, sender: str, market: MarketKey, params: SwapParams, hook_data: str
    ) -> BeforeSwapResult:
        return self.coordinator.before_swap(caller, sender, market, params, hook_data)

    def after_swap(
        self,
        caller: str,
        sender: str,
        market: MarketKey,
        params: SwapParams,
        delta: BalanceDelta,
        hook_data: str,
    ) -> AfterSwapResult:
        return self.coordinator.after_swap(caller, sender, market, params, delta, hook_data)
