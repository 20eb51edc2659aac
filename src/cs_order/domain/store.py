"""OrderStore — confidential orders and their state machine.

    PENDING ──settle──▶ EXECUTED
       │ ├────cancel──▶ CANCELLED
       │ └────expire──▶ EXPIRED      (only for orders with a public expires_at)

Terminal states are immutable. Creating an order escrows the encrypted
amount-in from the owner's available balance, gated on
`available >= amount_in`. Cancel and expire release the escrow. Settle
consumes it and credits the realized output.
"""

import logging
from datetime import datetime

from src.cs_common.datetime_utils import to_epoch_seconds
from src.cs_common.enums import EventType, OrderStatus
from src.cs_common.errors import (
    DeadlineExpiredError,
    NotPendingError,
    OrderNotFoundError,
    SlippageExceededError,
    UnauthorizedError,
)
from src.cs_common.events import DomainEvent
from src.cs_common.id_generator import SnowflakeIdGenerator
from src.cs_crypto.backend import CryptoBackend, require_or_raise
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_engine.state import ConfidentialState
from src.cs_hook.domain.binding import HookBinder
from src.cs_ledger.domain.ledger import EncryptedLedger
from src.cs_order.domain.models import Order

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.EXECUTED, OrderStatus.CANCELLED, OrderStatus.EXPIRED},
    OrderStatus.EXECUTED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.EXPIRED: set(),
}

_EVENT_FOR_STATUS = {
    OrderStatus.EXECUTED: EventType.ORDER_SETTLED,
    OrderStatus.CANCELLED: EventType.ORDER_CANCELLED,
    OrderStatus.EXPIRED: EventType.ORDER_EXPIRED,
}


class OrderStore:
    def __init__(
        self,
        state: ConfidentialState,
        fhe: CryptoBackend,
        ledger: EncryptedLedger,
        binder: HookBinder,
        ids: SnowflakeIdGenerator,
    ) -> None:
        self._state = state
        self._fhe = fhe
        self._ledger = ledger
        self._binder = binder
        self._ids = ids

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    def create_order(
        self,
        owner: str,
        market_id: str,
        asset_in: str,
        asset_out: str,
        enc_amount_in: Ciphertext,
        enc_min_out: Ciphertext,
        enc_deadline: Ciphertext | None = None,
        expires_at: datetime | None = None,
    ) -> str:
        with self._state.atomic() as state:
            now = state.clock()
            if expires_at is not None and now >= expires_at:
                raise DeadlineExpiredError(f"new order of {owner}")

            order_id = self._ids.next_id()
            self._ledger.escrow(owner, asset_in, enc_amount_in)
            order = Order(
                id=order_id,
                owner=owner,
                market_id=market_id,
                asset_in=asset_in,
                asset_out=asset_out,
                encrypted_amount_in=enc_amount_in,
                encrypted_min_amount_out=enc_min_out,
                encrypted_deadline=enc_deadline,
                expires_at=expires_at,
                status=OrderStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            state.orders[order_id] = order
            state.orders_by_owner.setdefault(owner, []).append(order_id)
            state.mark_order(order_id)
            state.emit(DomainEvent(EventType.ORDER_CREATED, market_id, order.public_fields()))

        logger.info("Order created: id=%s owner=%s market=%s", order_id, owner, market_id)
        return order_id

    def cancel(self, order_id: str, caller: str) -> Order:
        with self._state.atomic():
            order = self.get_order(order_id)
            if caller != order.owner:
                raise UnauthorizedError(caller, f"cancel order {order_id}")
            if not order.is_active:
                raise NotPendingError(order_id, order.status.value)
            self._ledger.release_escrow(order.owner, order.asset_in, order.encrypted_amount_in)
            self._transition(order, OrderStatus.CANCELLED)
        logger.info("Order cancelled: id=%s", order_id)
        return order

    def expire(self, order_id: str) -> bool:
        """Move a pending order past its public expires_at to EXPIRED.

        Anyone may trigger this; it only ever acts on what the clock already
        decided. Returns False if the order has not expired yet.
        """
        with self._state.atomic() as state:
            order = self.get_order(order_id)
            if not order.is_active:
                raise NotPendingError(order_id, order.status.value)
            if not order.is_past_expiry(state.clock()):
                return False
            self._ledger.release_escrow(order.owner, order.asset_in, order.encrypted_amount_in)
            self._transition(order, OrderStatus.EXPIRED)
        logger.info("Order expired: id=%s", order_id)
        return True

    def expire_due(self) -> list[str]:
        now = self._state.clock()
        due = [o.id for o in self._state.orders.values() if o.is_active and o.is_past_expiry(now)]
        with self._state.atomic():
            for order_id in due:
                self.expire(order_id)
        return due

    # ------------------------------------------------------------------
    # Coordinator operations
    # ------------------------------------------------------------------

    def validate(
        self,
        order_id: str,
        expected_owner: str,
        expected_market: str,
        caller: str,
        expected_assets: tuple[str, str] | None = None,
    ) -> bool:
        """Read-only pre-trade check. A mismatch is False, never an error.

        `expected_assets` is the (asset_in, asset_out) pair the venue trade
        will actually move, as given by the market and trade direction.
        """
        self._binder.require_coordinator(caller, "validate orders")
        order = self._state.orders.get(order_id)
        if order is None:
            return False
        if expected_assets is not None and not order.trades(*expected_assets):
            return False
        return (
            order.owner == expected_owner
            and order.market_id == expected_market
            and order.is_active
            and not order.is_past_expiry(self._state.clock())
        )

    def settle(self, order_id: str, user: str, realized_output: int, caller: str) -> bool:
        """Execute a pending order against the venue-reported output.

        Gates, all on ciphertexts: encrypted deadline (if any) not passed,
        realized output >= encrypted minimum. Any false gate aborts with no
        mutation. Returns False without mutating if `user` is not the owner.
        """
        self._binder.require_coordinator(caller, "settle orders")
        with self._state.atomic() as state:
            order = self.get_order(order_id)
            if not order.is_active:
                raise NotPendingError(order_id, order.status.value)
            if order.owner != user:
                logger.warning("Settle for order %s by non-owner %s ignored", order_id, user)
                return False
            now = state.clock()
            if order.is_past_expiry(now):
                raise DeadlineExpiredError(order_id)
            if order.encrypted_deadline is not None:
                enc_now = self._fhe.encrypt(to_epoch_seconds(now))
                require_or_raise(
                    self._fhe,
                    self._fhe.lte(enc_now, order.encrypted_deadline),
                    DeadlineExpiredError(order_id),
                )

            enc_output = self._fhe.encrypt(realized_output)
            require_or_raise(
                self._fhe,
                self._fhe.gte(enc_output, order.encrypted_min_amount_out),
                SlippageExceededError(order_id),
            )
            self._ledger.debit_credit(
                order.owner,
                order.asset_in,
                order.encrypted_amount_in,
                order.asset_out,
                enc_output,
                caller,
            )
            order.executed_at = now
            self._transition(order, OrderStatus.EXECUTED)

        logger.info("Order settled: id=%s market=%s", order_id, order.market_id)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        order = self._state.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def get_user_orders(self, owner: str) -> list[Order]:
        return [self._state.orders[i] for i in self._state.orders_by_owner.get(owner, [])]

    def get_order_count(self) -> int:
        return len(self._state.orders)

    def is_order_active(self, order_id: str) -> bool:
        order = self._state.orders.get(order_id)
        return order is not None and order.is_active

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(self, order: Order, new_status: OrderStatus) -> None:
        if new_status not in ORDER_TRANSITIONS[order.status]:
            raise NotPendingError(order.id, order.status.value)
        order.status = new_status
        order.updated_at = self._state.clock()
        self._state.mark_order(order.id)
        self._state.emit(
            DomainEvent(_EVENT_FOR_STATUS[new_status], order.market_id, order.public_fields())
        )
