from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.database import get_db_session
from src.cs_engine.application.service import ExchangeService, get_exchange_service
from src.cs_gateway.auth.dependencies import get_current_identity
from src.cs_order.application.schemas import (
    CreateOrderRequest,
    ExpireOrdersResponse,
    OrderActiveResponse,
    OrderCountResponse,
    OrderListResponse,
    OrderResponse,
)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    req: CreateOrderRequest,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> OrderResponse:
    return await service.create_order(db, identity, req)


@router.post("/expire", response_model=ExpireOrdersResponse)
async def expire_orders(
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ExpireOrdersResponse:
    """Expire every pending order past its expires_at. Any authenticated caller may sweep."""
    return await service.expire_due_orders(db)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> OrderResponse:
    return await service.cancel_order(db, identity, order_id)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
) -> OrderListResponse:
    return await service.list_orders(identity)


@router.get("/count", response_model=OrderCountResponse)
async def get_order_count(
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
) -> OrderCountResponse:
    return await service.get_order_count()


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
) -> OrderResponse:
    return await service.get_order(order_id)


@router.get("/{order_id}/active", response_model=OrderActiveResponse)
async def is_order_active(
    order_id: str,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
) -> OrderActiveResponse:
    return await service.is_order_active(order_id)
