"""Concrete StateRepositoryProtocol over the per-module SQL repositories.

Fans a committed ChangeSet out to the per-module repositories.
Transaction ownership: the CALLER (ExchangeService) commits or rolls back.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_claim.infrastructure.persistence import IntentRepository
from src.cs_engine.domain.repository import PersistedState
from src.cs_engine.infrastructure.wal import write_wal_event
from src.cs_engine.state import ChangeSet
from src.cs_hook.infrastructure.persistence import BindingRepository
from src.cs_ledger.infrastructure.persistence import BalanceRepository
from src.cs_order.infrastructure.persistence import OrderRepository


class StateRepository:
    def __init__(self) -> None:
        self._orders = OrderRepository()
        self._intents = IntentRepository()
        self._balances = BalanceRepository()
        self._binding = BindingRepository()

    async def load(self, db: AsyncSession) -> PersistedState:
        return PersistedState(
            orders=await self._orders.list_all(db),
            intents=await self._intents.list_intents(db),
            executions=await self._intents.list_executions(db),
            balances=await self._balances.list_all(db),
            hook_binding=await self._binding.get(db),
        )

    async def persist(self, changes: ChangeSet, db: AsyncSession) -> None:
        if changes.hook_binding is not None:
            await self._binding.save(changes.hook_binding, db)
        for order in changes.orders:
            await self._orders.upsert(order, db)
        # Intents before executions: executions reference intents.
        for intent in changes.intents:
            await self._intents.upsert_intent(intent, db)
        for execution in changes.executions:
            await self._intents.insert_execution(execution, db)
        for key, handle in changes.balances.items():
            await self._balances.upsert(key, handle, db)
        for event in changes.events:
            await write_wal_event(event, db)
