"""cs_ledger REST API — encrypted deposits, withdrawals and sealed balance reads."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.database import get_db_session
from src.cs_common.response import ApiResponse, success_response
from src.cs_engine.application.service import ExchangeService, get_exchange_service
from src.cs_gateway.auth.dependencies import get_current_identity
from src.cs_ledger.application.schemas import EncryptedAmountRequest, SealBalanceRequest

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.post("/deposit")
async def deposit(
    body: EncryptedAmountRequest,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.deposit(db, identity, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/withdraw")
async def withdraw(
    body: EncryptedAmountRequest,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.withdraw(db, identity, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/balance/seal")
async def seal_balance(
    body: SealBalanceRequest,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    request: Request,
) -> ApiResponse:
    """Return the caller's own balance resealed for `public_key`."""
    data = await service.seal_balance(identity, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
