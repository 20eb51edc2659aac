"""Unit tests for OrderStore: lifecycle, escrow, validation and settlement gates."""

from datetime import datetime, timedelta

import pytest

from src.cs_common.datetime_utils import to_epoch_seconds
from src.cs_common.enums import BalanceBook, EventType, OrderStatus
from src.cs_common.errors import (
    DeadlineExpiredError,
    InsufficientEncryptedBalanceError,
    NotPendingError,
    OrderNotFoundError,
    SlippageExceededError,
    UnauthorizedError,
)
from src.cs_crypto.tagged_backend import TaggedFheBackend
from src.cs_engine.engine import ConfidentialEngine
from src.cs_ledger.domain.models import BalanceKey

COORDINATOR = "hook:settlement-coordinator"
MARKET = "mkt_weth_usdc"


def _make_order(
    engine: ConfidentialEngine,
    fhe: TaggedFheBackend,
    owner: str = "alice",
    amount_in: int = 1,
    min_out: int = 900,
    fund: int = 10,
    deadline: datetime | None = None,
    expires_at: datetime | None = None,
) -> str:
    if fund:
        engine.deposit_encrypted(owner, "WETH", fhe.encrypt(fund))
    enc_deadline = fhe.encrypt(to_epoch_seconds(deadline)) if deadline else None
    return engine.create_order(
        owner, MARKET, "WETH", "USDC", fhe.encrypt(amount_in), fhe.encrypt(min_out),
        enc_deadline, expires_at,
    )


def _balance(engine: ConfidentialEngine, fhe: TaggedFheBackend, identity: str, asset: str,
             book: BalanceBook = BalanceBook.AVAILABLE) -> int:
    ct = engine.state.balances.get(BalanceKey(identity, asset, book))
    return 0 if ct is None else fhe.decrypt(ct)


class TestCreateOrder:
    def test_creates_pending_order_and_escrows(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe, amount_in=4)
        order = engine.get_order(order_id)
        assert order.status == OrderStatus.PENDING
        assert order.owner == "alice"
        assert order.created_at is not None
        assert engine.get_order_count() == 1
        assert _balance(engine, fhe, "alice", "WETH") == 6
        assert _balance(engine, fhe, "alice", "WETH", BalanceBook.ESCROW) == 4

    def test_ids_are_distinct(self, engine: ConfidentialEngine, fhe: TaggedFheBackend) -> None:
        first = _make_order(engine, fhe)
        second = _make_order(engine, fhe)
        assert first != second
        assert [o.id for o in engine.get_user_orders("alice")] == [first, second]

    def test_unfunded_order_rejected_without_trace(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        with pytest.raises(InsufficientEncryptedBalanceError):
            _make_order(engine, fhe, fund=0)
        assert engine.get_order_count() == 0
        assert engine.get_user_orders("alice") == []

    def test_already_expired_rejected(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend, clock
    ) -> None:
        with pytest.raises(DeadlineExpiredError):
            _make_order(engine, fhe, expires_at=clock.now)

    def test_emits_created_event_without_ciphertexts(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe)
        events = [e for e in engine.state.drain_changes().events
                  if e.event_type == EventType.ORDER_CREATED]
        assert len(events) == 1
        assert events[0].payload["order_id"] == order_id
        assert not any("tfhe1" in str(v) for v in events[0].payload.values())


class TestCancel:
    def test_owner_cancels_and_escrow_returns(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe, amount_in=4)
        order = engine.cancel_order("alice", order_id)
        assert order.status == OrderStatus.CANCELLED
        assert not engine.is_order_active(order_id)
        assert _balance(engine, fhe, "alice", "WETH") == 10
        assert _balance(engine, fhe, "alice", "WETH", BalanceBook.ESCROW) == 0

    def test_non_owner_cannot_cancel(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe)
        with pytest.raises(UnauthorizedError):
            engine.cancel_order("bob", order_id)
        assert engine.is_order_active(order_id)

    def test_cancel_twice_is_not_pending(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe)
        engine.cancel_order("alice", order_id)
        with pytest.raises(NotPendingError):
            engine.cancel_order("alice", order_id)

    def test_unknown_order(self, engine: ConfidentialEngine) -> None:
        with pytest.raises(OrderNotFoundError):
            engine.cancel_order("alice", "404")


class TestExpire:
    def test_expire_after_expiry(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend, clock
    ) -> None:
        order_id = _make_order(engine, fhe, amount_in=4, expires_at=clock.now + timedelta(minutes=5))
        assert engine.expire_order(order_id) is False
        clock.advance(minutes=5)
        assert engine.expire_order(order_id) is True
        assert engine.get_order(order_id).status == OrderStatus.EXPIRED
        assert _balance(engine, fhe, "alice", "WETH") == 10

    def test_expire_due_sweeps_only_due_orders(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend, clock
    ) -> None:
        due = _make_order(engine, fhe, expires_at=clock.now + timedelta(minutes=1))
        later = _make_order(engine, fhe, expires_at=clock.now + timedelta(hours=1))
        open_ended = _make_order(engine, fhe)
        clock.advance(minutes=2)
        assert engine.expire_due_orders() == [due]
        assert engine.is_order_active(later)
        assert engine.is_order_active(open_ended)

    def test_expire_terminal_order_is_not_pending(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend, clock
    ) -> None:
        order_id = _make_order(engine, fhe, expires_at=clock.now + timedelta(minutes=1))
        engine.cancel_order("alice", order_id)
        clock.advance(minutes=2)
        with pytest.raises(NotPendingError):
            engine.expire_order(order_id)


class TestValidate:
    def test_matching_order_is_valid(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe)
        assert engine.orders.validate(order_id, "alice", MARKET, COORDINATOR) is True

    @pytest.mark.parametrize("owner, market", [("bob", MARKET), ("alice", "mkt_other")])
    def test_mismatch_is_false(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend, owner: str, market: str
    ) -> None:
        order_id = _make_order(engine, fhe)
        assert engine.orders.validate(order_id, owner, market, COORDINATOR) is False

    def test_expected_assets_must_match_order_pair(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe)
        validate = engine.orders.validate
        assert validate(order_id, "alice", MARKET, COORDINATOR, ("WETH", "USDC")) is True
        assert validate(order_id, "alice", MARKET, COORDINATOR, ("USDC", "WETH")) is False
        assert validate(order_id, "alice", MARKET, COORDINATOR, ("DAI", "USDC")) is False

    def test_unknown_and_cancelled_are_false(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe)
        engine.cancel_order("alice", order_id)
        assert engine.orders.validate(order_id, "alice", MARKET, COORDINATOR) is False
        assert engine.orders.validate("404", "alice", MARKET, COORDINATOR) is False

    def test_validate_is_read_only(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe)
        engine.state.drain_changes()
        engine.orders.validate(order_id, "alice", MARKET, COORDINATOR)
        assert engine.state.drain_changes().is_empty

    def test_requires_coordinator(self, engine: ConfidentialEngine, fhe: TaggedFheBackend) -> None:
        order_id = _make_order(engine, fhe)
        with pytest.raises(UnauthorizedError):
            engine.orders.validate(order_id, "alice", MARKET, "alice")


class TestSettle:
    def test_settle_credits_output(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe, amount_in=1, min_out=900)
        assert engine.orders.settle(order_id, "alice", 950, COORDINATOR) is True
        order = engine.get_order(order_id)
        assert order.status == OrderStatus.EXECUTED
        assert order.executed_at is not None
        assert _balance(engine, fhe, "alice", "USDC") == 950
        assert _balance(engine, fhe, "alice", "WETH", BalanceBook.ESCROW) == 0

    def test_settle_twice_is_not_pending(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe)
        engine.orders.settle(order_id, "alice", 950, COORDINATOR)
        with pytest.raises(NotPendingError):
            engine.orders.settle(order_id, "alice", 950, COORDINATOR)
        assert _balance(engine, fhe, "alice", "USDC") == 950

    def test_slippage_leaves_everything_unchanged(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe, min_out=900)
        engine.state.drain_changes()
        with pytest.raises(SlippageExceededError):
            engine.orders.settle(order_id, "alice", 899, COORDINATOR)
        assert engine.is_order_active(order_id)
        assert _balance(engine, fhe, "alice", "USDC") == 0
        assert engine.state.drain_changes().is_empty

    def test_output_equal_to_minimum_passes(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe, min_out=900)
        assert engine.orders.settle(order_id, "alice", 900, COORDINATOR) is True

    def test_non_owner_user_returns_false(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend
    ) -> None:
        order_id = _make_order(engine, fhe)
        assert engine.orders.settle(order_id, "bob", 950, COORDINATOR) is False
        assert engine.is_order_active(order_id)

    def test_encrypted_deadline_gate(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend, clock
    ) -> None:
        order_id = _make_order(engine, fhe, deadline=clock.now + timedelta(minutes=1))
        clock.advance(minutes=2)
        with pytest.raises(DeadlineExpiredError):
            engine.orders.settle(order_id, "alice", 950, COORDINATOR)
        assert engine.is_order_active(order_id)

    def test_encrypted_deadline_not_yet_passed(
        self, engine: ConfidentialEngine, fhe: TaggedFheBackend, clock
    ) -> None:
        order_id = _make_order(engine, fhe, deadline=clock.now + timedelta(minutes=1))
        assert engine.orders.settle(order_id, "alice", 950, COORDINATOR) is True

    def test_requires_coordinator(self, engine: ConfidentialEngine, fhe: TaggedFheBackend) -> None:
        order_id = _make_order(engine, fhe)
        with pytest.raises(UnauthorizedError):
            engine.orders.settle(order_id, "alice", 950, "alice")


class TestQueries:
    def test_unknown_order_is_not_active(self, engine: ConfidentialEngine) -> None:
        assert engine.is_order_active("404") is False

    def test_get_unknown_order_raises(self, engine: ConfidentialEngine) -> None:
        with pytest.raises(OrderNotFoundError):
            engine.get_order("404")

    def test_user_orders_empty_for_stranger(self, engine: ConfidentialEngine) -> None:
        assert engine.get_user_orders("nobody") == []
