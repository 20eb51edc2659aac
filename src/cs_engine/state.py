"""ConfidentialState — the single owned store object every component works on.

Each component owns its own tables: the order store owns `orders` and
`orders_by_owner`, the ledger owns `balances`, the claim book owns `intents`
and `executions`, the binder owns `hook_binding`. They are gathered here only
so that one unit of work can cover a nested call chain
(coordinator → order store → ledger).

Atomicity: `atomic()` snapshots every table on the outermost entry and
restores the snapshot if anything inside raises. Nested `atomic()` blocks
join the outer unit. There is no locking here; callers serialize access.

Change tracking: mutations mark keys dirty; `drain_changes()` hands the
committed records and the event outbox to the persistence layer.
"""

import copy
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.cs_claim.domain.models import Execution, Intent
from src.cs_common.datetime_utils import utc_now
from src.cs_common.events import DomainEvent
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_ledger.domain.models import BalanceKey
from src.cs_order.domain.models import Order

logger = logging.getLogger(__name__)


@dataclass
class ChangeSet:
    orders: list[Order] = field(default_factory=list)
    intents: list[Intent] = field(default_factory=list)
    executions: list[Execution] = field(default_factory=list)
    balances: dict[BalanceKey, Ciphertext] = field(default_factory=dict)
    hook_binding: str | None = None
    events: list[DomainEvent] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.orders
            or self.intents
            or self.executions
            or self.balances
            or self.hook_binding
            or self.events
        )


@dataclass
class _Dirty:
    orders: set[str] = field(default_factory=set)
    intents: set[str] = field(default_factory=set)
    executions: set[str] = field(default_factory=set)
    balances: set[BalanceKey] = field(default_factory=set)
    hook_binding: bool = False


class ConfidentialState:
    _TABLES = (
        "orders",
        "orders_by_owner",
        "intents",
        "executions",
        "balances",
        "hook_binding",
        "execution_checkpoint",
        "outbox",
        "_dirty",
    )

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self.clock = clock
        self.orders: dict[str, Order] = {}
        self.orders_by_owner: dict[str, list[str]] = {}
        self.intents: dict[str, Intent] = {}
        self.executions: dict[str, Execution] = {}
        self.balances: dict[BalanceKey, Ciphertext] = {}
        self.hook_binding: str | None = None
        self.execution_checkpoint = 0
        self.outbox: list[DomainEvent] = []
        self._dirty = _Dirty()
        self._depth = 0

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator["ConfidentialState"]:
        if self._depth > 0:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        snapshot = self._snapshot()
        self._depth = 1
        try:
            yield self
        except BaseException:
            self._restore(snapshot)
            logger.debug("Unit of work rolled back")
            raise
        finally:
            self._depth = 0

    @property
    def in_unit_of_work(self) -> bool:
        return self._depth > 0

    def _snapshot(self) -> dict[str, Any]:
        return {name: copy.deepcopy(getattr(self, name)) for name in self._TABLES}

    def _restore(self, snapshot: dict[str, Any]) -> None:
        for name, value in snapshot.items():
            setattr(self, name, value)

    # ------------------------------------------------------------------
    # Change tracking
    # ------------------------------------------------------------------

    def mark_order(self, order_id: str) -> None:
        self._dirty.orders.add(order_id)

    def mark_intent(self, intent_id: str) -> None:
        self._dirty.intents.add(intent_id)

    def mark_execution(self, intent_id: str) -> None:
        self._dirty.executions.add(intent_id)

    def mark_balance(self, key: BalanceKey) -> None:
        self._dirty.balances.add(key)

    def mark_hook_binding(self) -> None:
        self._dirty.hook_binding = True

    def emit(self, event: DomainEvent) -> None:
        self.outbox.append(event)

    def drain_changes(self) -> ChangeSet:
        dirty = self._dirty
        changes = ChangeSet(
            orders=[self.orders[i] for i in sorted(dirty.orders)],
            intents=[self.intents[i] for i in sorted(dirty.intents)],
            executions=[self.executions[i] for i in sorted(dirty.executions)],
            balances={k: self.balances[k] for k in dirty.balances},
            hook_binding=self.hook_binding if dirty.hook_binding else None,
            events=list(self.outbox),
        )
        self._dirty = _Dirty()
        self.outbox = []
        return changes

    # ------------------------------------------------------------------
    # Rebuild from persistence
    # ------------------------------------------------------------------

    def load(
        self,
        orders: list[Order],
        intents: list[Intent],
        executions: list[Execution],
        balances: dict[BalanceKey, Ciphertext],
        hook_binding: str | None,
    ) -> None:
        """Replace every table with persisted records. Nothing is marked dirty."""
        self.orders = {o.id: o for o in orders}
        self.orders_by_owner = {}
        for order in sorted(orders, key=lambda o: (o.created_at is None, o.created_at, o.id)):
            self.orders_by_owner.setdefault(order.owner, []).append(order.id)
        self.intents = {i.id: i for i in intents}
        self.executions = {e.intent_id: e for e in executions}
        self.balances = dict(balances)
        self.hook_binding = hook_binding
        self.execution_checkpoint = max((e.checkpoint for e in executions), default=0)
        self.outbox = []
        self._dirty = _Dirty()
