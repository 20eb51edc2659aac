from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_claim.application.schemas import (
    ClaimRequest,
    ClaimResponse,
    CreateIntentRequest,
    IntentResponse,
)
from src.cs_common.database import get_db_session
from src.cs_engine.application.service import ExchangeService, get_exchange_service
from src.cs_gateway.auth.dependencies import get_current_identity

router = APIRouter(prefix="/intents", tags=["intents"])


@router.post("", response_model=IntentResponse, status_code=201)
async def create_intent(
    req: CreateIntentRequest,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> IntentResponse:
    return await service.create_intent(db, identity, req)


@router.get("/{intent_id}", response_model=IntentResponse)
async def get_intent(
    intent_id: str,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
) -> IntentResponse:
    return await service.get_intent(intent_id)


@router.post("/{intent_id}/claim", response_model=ClaimResponse)
async def claim_output(
    intent_id: str,
    req: ClaimRequest,
    identity: Annotated[str, Depends(get_current_identity)],
    service: Annotated[ExchangeService, Depends(get_exchange_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ClaimResponse:
    return await service.claim(db, identity, intent_id, req.public_key)
