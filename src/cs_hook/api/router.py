"""Venue callback and hook administration endpoints.

The execution venue authenticates with a token whose subject is
VENUE_IDENTITY; binding requires ADMIN_IDENTITY. Both checks happen in the
core, so a wrong caller gets the core's AppError (403), not a 401.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.database import get_db_session
from src.cs_engine.application.service import ExchangeService, get_exchange_service
from src.cs_gateway.auth.dependencies import get_current_identity
from src.cs_hook.application.schemas import (
    AfterSwapRequest,
    BeforeSwapRequest,
    BindResponse,
    HookResultResponse,
)

router = APIRouter(prefix="/hook", tags=["hook"])


@router.post("/bind", response_model=BindResponse)
async def bind_coordinator(
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> BindResponse:
    return await service.bind_coordinator(db, identity)


@router.post("/before-swap", response_model=HookResultResponse)
async def before_swap(
    req: BeforeSwapRequest,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> HookResultResponse:
    return await service.before_swap(db, identity, req)


@router.post("/after-swap", response_model=HookResultResponse)
async def after_swap(
    req: AfterSwapRequest,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> HookResultResponse:
    return await service.after_swap(db, identity, req)
