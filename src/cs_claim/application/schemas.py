"""Pydantic schemas for the intent / claim API."""

from datetime import datetime

from pydantic import BaseModel, field_validator

from src.cs_claim.domain.models import Execution, Intent
from src.cs_common.schema_utils import ensure_utc, require_non_blank
from src.cs_hook.application.schemas import MarketKeyModel


class CreateIntentRequest(BaseModel):
    market: MarketKeyModel
    zero_for_one: bool
    deadline: datetime
    encrypted_amount_in: str
    encrypted_min_amount_out: str

    @field_validator("encrypted_amount_in", "encrypted_min_amount_out")
    @classmethod
    def non_blank(cls, v: str) -> str:
        return require_non_blank(v)

    @field_validator("deadline")
    @classmethod
    def utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)  # type: ignore[return-value]


class IntentResponse(BaseModel):
    id: str
    owner: str
    market_id: str
    zero_for_one: bool
    asset_in: str
    asset_out: str
    deadline: datetime
    status: str
    execution_checkpoint: int | None = None
    executed_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, intent: Intent, execution: Execution | None) -> "IntentResponse":
        return cls(
            id=intent.id,
            owner=intent.owner,
            market_id=intent.market_id,
            zero_for_one=intent.zero_for_one,
            asset_in=intent.asset_in,
            asset_out=intent.asset_out,
            deadline=intent.deadline,
            status=intent.status.value,
            execution_checkpoint=execution.checkpoint if execution else None,
            executed_at=execution.executed_at if execution else None,
            created_at=intent.created_at,
        )


class ClaimRequest(BaseModel):
    public_key: str

    @field_validator("public_key")
    @classmethod
    def non_blank(cls, v: str) -> str:
        return require_non_blank(v)


class ClaimResponse(BaseModel):
    intent_id: str
    sealed_output: str  # base64
