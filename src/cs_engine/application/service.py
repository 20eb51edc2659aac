"""Async service layer over the synchronous engine.

Every mutating call runs under one asyncio.Lock: the engine operation itself
is an all-or-nothing unit of work on the in-memory state, and its committed
change set is then written through to PostgreSQL in one transaction. Domain
events are published only after that commit.

The write-through runs inside the same unit of work as the operation. If it
fails, the in-memory state is restored, the DB transaction is rolled back
and the state is reloaded from the DB when it is reachable. Then the error
is re-raised, so the process never keeps state the DB does not have.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings
from src.cs_claim.application.schemas import (
    ClaimResponse,
    CreateIntentRequest,
    IntentResponse,
)
from src.cs_common.enums import BalanceBook
from src.cs_common.events import EventPublisher, InMemoryEventPublisher
from src.cs_common.schema_utils import sealed_to_str
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_crypto.tagged_backend import TaggedFheBackend
from src.cs_engine.domain.repository import StateRepositoryProtocol
from src.cs_engine.engine import ConfidentialEngine
from src.cs_engine.infrastructure.persistence import StateRepository
from src.cs_hook.application.schemas import (
    AfterSwapRequest,
    BeforeSwapRequest,
    BindResponse,
    HookResultResponse,
)
from src.cs_ledger.application.schemas import (
    EncryptedAmountRequest,
    LedgerMutationResponse,
    SealBalanceRequest,
    SealedBalanceResponse,
)
from src.cs_order.application.schemas import (
    CreateOrderRequest,
    ExpireOrdersResponse,
    OrderActiveResponse,
    OrderCountResponse,
    OrderListResponse,
    OrderResponse,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExchangeService:
    def __init__(
        self,
        engine: ConfidentialEngine,
        repo: StateRepositoryProtocol | None = None,
        publisher: EventPublisher | None = None,
    ) -> None:
        self._engine = engine
        self._repo: StateRepositoryProtocol = repo or StateRepository()
        self._publisher: EventPublisher = publisher or InMemoryEventPublisher()
        self._lock = asyncio.Lock()

    @property
    def engine(self) -> ConfidentialEngine:
        return self._engine

    async def load(self, db: AsyncSession) -> None:
        """Rebuild the in-memory state from the DB (startup and error recovery)."""
        persisted = await self._repo.load(db)
        self._engine.state.load(
            orders=persisted.orders,
            intents=persisted.intents,
            executions=persisted.executions,
            balances=persisted.balances,
            hook_binding=persisted.hook_binding,
        )
        logger.info(
            "State loaded: orders=%d intents=%d balances=%d bound=%s",
            len(persisted.orders),
            len(persisted.intents),
            len(persisted.balances),
            persisted.hook_binding is not None,
        )

    async def _run(self, db: AsyncSession, op: Callable[[], T]) -> T:
        state = self._engine.state
        async with self._lock:
            persisting = False
            try:
                # The write-through joins the op's unit of work: a failed
                # persist restores the in-memory state like a failed gate.
                with state.atomic():
                    result = op()
                    changes = state.drain_changes()
                    if changes.is_empty:
                        return result
                    persisting = True
                    await self._repo.persist(changes, db)
                    await db.commit()
            except Exception:
                if persisting:
                    await self._recover(db)
                raise
            await self._publisher.publish(changes.events)
            return result

    async def _recover(self, db: AsyncSession) -> None:
        await db.rollback()
        logger.exception("Persisting change set failed; rebuilding state from DB")
        try:
            await self.load(db)
        except Exception:
            logger.exception("Reload after failed persist also failed; keeping restored state")

    def _ct(self, handle: str) -> Ciphertext:
        return self._engine.fhe.parse(handle)

    # ------------------------------------------------------------------
    # Hook administration and venue callbacks
    # ------------------------------------------------------------------

    async def bind_coordinator(self, db: AsyncSession, caller: str) -> BindResponse:
        identity = await self._run(db, lambda: self._engine.bind_coordinator(caller))
        return BindResponse(coordinator_identity=identity)

    async def before_swap(
        self, db: AsyncSession, caller: str, req: BeforeSwapRequest
    ) -> HookResultResponse:
        result = await self._run(
            db,
            lambda: self._engine.before_swap(
                caller, req.sender, req.market.to_domain(), req.params(), req.hook_data
            ),
        )
        return HookResultResponse(
            selector=result.selector,
            delta_override=result.delta_override,
            fee_override=result.fee_override,
        )

    async def after_swap(
        self, db: AsyncSession, caller: str, req: AfterSwapRequest
    ) -> HookResultResponse:
        result = await self._run(
            db,
            lambda: self._engine.after_swap(
                caller,
                req.sender,
                req.market.to_domain(),
                req.params(),
                req.delta.to_domain(),
                req.hook_data,
            ),
        )
        return HookResultResponse(selector=result.selector, delta_override=result.delta_override)

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    async def deposit(
        self, db: AsyncSession, caller: str, req: EncryptedAmountRequest
    ) -> LedgerMutationResponse:
        amount = self._ct(req.encrypted_amount)
        await self._run(db, lambda: self._engine.deposit_encrypted(caller, req.asset, amount))
        return LedgerMutationResponse(identity=caller, asset=req.asset, operation="DEPOSIT")

    async def withdraw(
        self, db: AsyncSession, caller: str, req: EncryptedAmountRequest
    ) -> LedgerMutationResponse:
        amount = self._ct(req.encrypted_amount)
        await self._run(db, lambda: self._engine.withdraw_encrypted(caller, req.asset, amount))
        return LedgerMutationResponse(identity=caller, asset=req.asset, operation="WITHDRAW")

    async def seal_balance(self, caller: str, req: SealBalanceRequest) -> SealedBalanceResponse:
        sealed = self._engine.ledger.seal_balance(
            caller, req.asset, req.public_key, caller, BalanceBook(req.book)
        )
        return SealedBalanceResponse(
            identity=caller, asset=req.asset, book=req.book, sealed_balance=sealed_to_str(sealed)
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def create_order(
        self, db: AsyncSession, caller: str, req: CreateOrderRequest
    ) -> OrderResponse:
        amount_in = self._ct(req.encrypted_amount_in)
        min_out = self._ct(req.encrypted_min_amount_out)
        deadline = self._ct(req.encrypted_deadline) if req.encrypted_deadline else None
        order_id = await self._run(
            db,
            lambda: self._engine.create_order(
                caller, req.market_id, req.asset_in, req.asset_out,
                amount_in, min_out, deadline, req.expires_at,
            ),
        )
        return OrderResponse.from_domain(self._engine.get_order(order_id))

    async def cancel_order(self, db: AsyncSession, caller: str, order_id: str) -> OrderResponse:
        order = await self._run(db, lambda: self._engine.cancel_order(caller, order_id))
        return OrderResponse.from_domain(order)

    async def expire_due_orders(self, db: AsyncSession) -> ExpireOrdersResponse:
        expired = await self._run(db, self._engine.expire_due_orders)
        return ExpireOrdersResponse(expired_order_ids=expired)

    async def get_order(self, order_id: str) -> OrderResponse:
        return OrderResponse.from_domain(self._engine.get_order(order_id))

    async def list_orders(self, owner: str) -> OrderListResponse:
        orders = self._engine.get_user_orders(owner)
        return OrderListResponse(
            items=[OrderResponse.from_domain(o) for o in orders], count=len(orders)
        )

    async def get_order_count(self) -> OrderCountResponse:
        return OrderCountResponse(count=self._engine.get_order_count())

    async def is_order_active(self, order_id: str) -> OrderActiveResponse:
        return OrderActiveResponse(order_id=order_id, active=self._engine.is_order_active(order_id))

    # ------------------------------------------------------------------
    # Intents / claims
    # ------------------------------------------------------------------

    async def create_intent(
        self, db: AsyncSession, caller: str, req: CreateIntentRequest
    ) -> IntentResponse:
        amount_in = self._ct(req.encrypted_amount_in)
        min_out = self._ct(req.encrypted_min_amount_out)
        intent_id = await self._run(
            db,
            lambda: self._engine.create_intent(
                caller, req.market.to_domain(), req.zero_for_one, req.deadline,
                amount_in, min_out,
            ),
        )
        return await self.get_intent(intent_id)

    async def get_intent(self, intent_id: str) -> IntentResponse:
        intent, execution = self._engine.get_intent(intent_id)
        return IntentResponse.from_domain(intent, execution)

    async def claim(
        self, db: AsyncSession, caller: str, intent_id: str, public_key: str
    ) -> ClaimResponse:
        sealed = await self._run(
            db, lambda: self._engine.claim_swap_output(caller, intent_id, public_key)
        )
        return ClaimResponse(intent_id=intent_id, sealed_output=sealed_to_str(sealed))


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_service: ExchangeService | None = None


def build_service(settings: Settings, publisher: EventPublisher | None = None) -> ExchangeService:
    engine = ConfidentialEngine(
        fhe=TaggedFheBackend(settings.FHE_BACKEND_KEY),
        venue_identity=settings.VENUE_IDENTITY,
        coordinator_identity=settings.COORDINATOR_IDENTITY,
        admin_identity=settings.ADMIN_IDENTITY,
        machine_id=settings.MACHINE_ID,
    )
    return ExchangeService(engine, publisher=publisher)


def get_exchange_service() -> ExchangeService:
    global _service  # noqa: PLW0603
    if _service is None:
        from config.settings import settings

        _service = build_service(settings)
    return _service


def set_exchange_service(service: ExchangeService | None) -> None:
    global _service  # noqa: PLW0603
    _service = service
