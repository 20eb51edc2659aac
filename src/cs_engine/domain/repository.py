"""StateRepository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_claim.domain.models import Execution, Intent
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_engine.state import ChangeSet
from src.cs_ledger.domain.models import BalanceKey
from src.cs_order.domain.models import Order


@dataclass
class PersistedState:
    orders: list[Order]
    intents: list[Intent]
    executions: list[Execution]
    balances: dict[BalanceKey, Ciphertext]
    hook_binding: str | None


class StateRepositoryProtocol(Protocol):
    async def load(self, db: AsyncSession) -> PersistedState: ...

    async def persist(self, changes: ChangeSet, db: AsyncSession) -> None: ...
