"""Pydantic schemas for the venue callback API."""

from pydantic import BaseModel, Field

from src.cs_hook.domain.venue import BalanceDelta, MarketKey, SwapParams


class MarketKeyModel(BaseModel):
    asset0: str = Field(..., min_length=1, max_length=64)
    asset1: str = Field(..., min_length=1, max_length=64)
    fee: int = Field(3000, ge=0)

    def to_domain(self) -> MarketKey:
        return MarketKey(asset0=self.asset0, asset1=self.asset1, fee=self.fee)


class BalanceDeltaModel(BaseModel):
    amount0: int
    amount1: int

    def to_domain(self) -> BalanceDelta:
        return BalanceDelta(amount0=self.amount0, amount1=self.amount1)


class BeforeSwapRequest(BaseModel):
    sender: str = Field(..., min_length=1)
    market: MarketKeyModel
    zero_for_one: bool
    amount_specified: int = 0
    hook_data: str = Field(..., description="Opaque order reference")

    def params(self) -> SwapParams:
        return SwapParams(zero_for_one=self.zero_for_one, amount_specified=self.amount_specified)


class AfterSwapRequest(BeforeSwapRequest):
    delta: BalanceDeltaModel


class HookResultResponse(BaseModel):
    selector: str
    delta_override: int = 0
    fee_override: int | None = None


class BindResponse(BaseModel):
    coordinator_identity: str
