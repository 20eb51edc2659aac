# src/cs_order/application/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from src.cs_common.schema_utils import ensure_utc, require_non_blank
from src.cs_order.domain.models import Order


class CreateOrderRequest(BaseModel):
    market_id: str = Field(..., max_length=64)
    asset_in: str = Field(..., max_length=64)
    asset_out: str = Field(..., max_length=64)
    encrypted_amount_in: str
    encrypted_min_amount_out: str
    encrypted_deadline: str | None = None
    expires_at: datetime | None = None

    @field_validator("market_id", "asset_in", "asset_out", "encrypted_amount_in",
                     "encrypted_min_amount_out")
    @classmethod
    def non_blank(cls, v: str) -> str:
        return require_non_blank(v)

    @field_validator("expires_at")
    @classmethod
    def utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)

    @model_validator(mode="after")
    def distinct_assets(self) -> "CreateOrderRequest":
        if self.asset_in == self.asset_out:
            raise ValueError("asset_in and asset_out must differ")
        return self


class OrderResponse(BaseModel):
    """Public view of an order. Ciphertexts are never returned."""

    id: str
    owner: str
    market_id: str
    asset_in: str
    asset_out: str
    status: str
    has_encrypted_deadline: bool
    expires_at: datetime | None = None
    created_at: datetime | None = None
    executed_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            owner=order.owner,
            market_id=order.market_id,
            asset_in=order.asset_in,
            asset_out=order.asset_out,
            status=order.status.value,
            has_encrypted_deadline=order.encrypted_deadline is not None,
            expires_at=order.expires_at,
            created_at=order.created_at,
            executed_at=order.executed_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    count: int


class OrderCountResponse(BaseModel):
    count: int


class OrderActiveResponse(BaseModel):
    order_id: str
    active: bool


class ExpireOrdersResponse(BaseModel):
    expired_order_ids: list[str]
