"""Unit tests for the raw-SQL repositories using a mocked AsyncSession."""

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from src.cs_claim.domain.models import Execution, Intent
from src.cs_claim.infrastructure.persistence import IntentRepository
from src.cs_common.enums import BalanceBook, EventType, IntentStatus, OrderStatus
from src.cs_common.events import DomainEvent
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_engine.infrastructure.persistence import StateRepository
from src.cs_engine.infrastructure.wal import write_wal_event
from src.cs_engine.state import ChangeSet
from src.cs_hook.infrastructure.persistence import BindingRepository
from src.cs_ledger.domain.models import BalanceKey
from src.cs_ledger.infrastructure.persistence import BalanceRepository
from src.cs_order.domain.models import Order
from src.cs_order.infrastructure.persistence import OrderRepository

NOW = datetime(2026, 1, 1, tzinfo=UTC)


def _mock_db(rows: list[Any] | None = None) -> AsyncMock:
    db = AsyncMock()
    result = MagicMock()
    result.fetchall.return_value = rows or []
    result.fetchone.return_value = rows[0] if rows else None
    db.execute.return_value = result
    return db


def _make_order(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = {
        "id": "1",
        "owner": "alice",
        "market_id": "mkt_1",
        "asset_in": "WETH",
        "asset_out": "USDC",
        "encrypted_amount_in": Ciphertext("h-in"),
        "encrypted_min_amount_out": Ciphertext("h-min"),
        "created_at": NOW,
        "updated_at": NOW,
    }
    defaults.update(kwargs)
    return Order(**defaults)


def _make_intent() -> Intent:
    return Intent(
        id="0xabc",
        owner="alice",
        market_id="mkt_1",
        zero_for_one=True,
        asset_in="WETH",
        asset_out="USDC",
        deadline=NOW,
        encrypted_amount_in=Ciphertext("h-in"),
        encrypted_min_amount_out=Ciphertext("h-min"),
        created_at=NOW,
        updated_at=NOW,
    )


def _order_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "1")
    row.owner = "alice"
    row.market_id = "mkt_1"
    row.asset_in = "WETH"
    row.asset_out = "USDC"
    row.encrypted_amount_in = "h-in"
    row.encrypted_min_amount_out = "h-min"
    row.encrypted_deadline = kwargs.get("encrypted_deadline")
    row.expires_at = None
    row.status = kwargs.get("status", "PENDING")
    row.created_at = NOW
    row.executed_at = None
    row.updated_at = NOW
    return row


class TestOrderRepository:
    async def test_upsert_passes_handles_not_objects(self) -> None:
        db = _mock_db()
        await OrderRepository().upsert(_make_order(), db)
        params = db.execute.await_args.args[1]
        assert params["encrypted_amount_in"] == "h-in"
        assert params["encrypted_deadline"] is None
        assert params["status"] == "PENDING"

    async def test_list_all_maps_rows(self) -> None:
        db = _mock_db([_order_row(encrypted_deadline="h-dl", status="EXECUTED")])
        orders = await OrderRepository().list_all(db)
        assert len(orders) == 1
        assert orders[0].status == OrderStatus.EXECUTED
        assert orders[0].encrypted_deadline == Ciphertext("h-dl")


class TestIntentRepository:
    async def test_upsert_intent(self) -> None:
        db = _mock_db()
        await IntentRepository().upsert_intent(_make_intent(), db)
        params = db.execute.await_args.args[1]
        assert params["zero_for_one"] is True
        assert params["status"] == IntentStatus.PENDING.value

    async def test_insert_execution(self) -> None:
        db = _mock_db()
        execution = Execution("0xabc", Ciphertext("h-out"), checkpoint=3, executed_at=NOW)
        await IntentRepository().insert_execution(execution, db)
        params = db.execute.await_args.args[1]
        assert params == {
            "intent_id": "0xabc",
            "encrypted_output": "h-out",
            "checkpoint": 3,
            "executed_at": NOW,
        }

    async def test_list_executions(self) -> None:
        row = MagicMock(intent_id="0xabc", encrypted_output="h-out", checkpoint=1, executed_at=NOW)
        executions = await IntentRepository().list_executions(_mock_db([row]))
        assert executions[0].encrypted_output == Ciphertext("h-out")


class TestBalanceRepository:
    async def test_list_all_keys_by_book(self) -> None:
        row = MagicMock(identity="alice", asset="WETH", book="ESCROW", handle="h")
        balances = await BalanceRepository().list_all(_mock_db([row]))
        assert balances == {BalanceKey("alice", "WETH", BalanceBook.ESCROW): Ciphertext("h")}


class TestBindingRepository:
    async def test_get_none_when_unbound(self) -> None:
        assert await BindingRepository().get(_mock_db()) is None

    async def test_get_bound(self) -> None:
        row = MagicMock(coordinator_identity="hook")
        assert await BindingRepository().get(_mock_db([row])) == "hook"


class TestWal:
    async def test_payload_serialized_as_json(self) -> None:
        db = _mock_db()
        event = DomainEvent(EventType.ORDER_CREATED, "mkt_1", {"order_id": "1"}, NOW)
        await write_wal_event(event, db)
        params = db.execute.await_args.args[1]
        assert params["event_type"] == "ORDER_CREATED"
        assert params["payload"] == '{"order_id": "1"}'


class TestStateRepository:
    async def test_persist_writes_every_part(self) -> None:
        db = _mock_db()
        changes = ChangeSet(
            orders=[_make_order()],
            intents=[_make_intent()],
            executions=[Execution("0xabc", Ciphertext("h-out"), 1, NOW)],
            balances={BalanceKey("alice", "USDC"): Ciphertext("h")},
            hook_binding="hook",
            events=[DomainEvent(EventType.HOOK_BOUND, "", {"coordinator": "hook"}, NOW)],
        )
        await StateRepository().persist(changes, db)
        assert db.execute.await_count == 6
        db.commit.assert_not_awaited()

    async def test_load_assembles_state(self) -> None:
        db = _mock_db()
        state = await StateRepository().load(db)
        assert state.orders == []
        assert state.balances == {}
        assert state.hook_binding is None
