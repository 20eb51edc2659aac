"""Unit tests for request/response schemas."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from src.cs_claim.application.schemas import ClaimRequest, CreateIntentRequest, IntentResponse
from src.cs_claim.domain.models import Execution, Intent
from src.cs_common.enums import IntentStatus
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_hook.application.schemas import AfterSwapRequest
from src.cs_hook.domain.venue import MarketKey
from src.cs_order.application.schemas import CreateOrderRequest, OrderResponse
from src.cs_order.domain.models import Order


class TestCreateOrderRequest:
    def _body(self, **kwargs: object) -> dict:
        body: dict[str, object] = {
            "market_id": "mkt_1",
            "asset_in": "WETH",
            "asset_out": "USDC",
            "encrypted_amount_in": "h-in",
            "encrypted_min_amount_out": "h-min",
        }
        body.update(kwargs)
        return body

    def test_valid(self) -> None:
        req = CreateOrderRequest.model_validate(self._body())
        assert req.encrypted_deadline is None
        assert req.expires_at is None

    def test_naive_expiry_becomes_utc(self) -> None:
        req = CreateOrderRequest.model_validate(self._body(expires_at="2026-01-01T00:00:00"))
        assert req.expires_at == datetime(2026, 1, 1, tzinfo=UTC)

    def test_padded_handle_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest.model_validate(self._body(encrypted_amount_in=" h-in"))

    def test_same_assets_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest.model_validate(self._body(asset_out="WETH"))


class TestOrderResponse:
    def test_hides_ciphertexts(self) -> None:
        order = Order(
            id="1",
            owner="alice",
            market_id="mkt_1",
            asset_in="WETH",
            asset_out="USDC",
            encrypted_amount_in=Ciphertext("h-in"),
            encrypted_min_amount_out=Ciphertext("h-min"),
            encrypted_deadline=Ciphertext("h-dl"),
        )
        dumped = OrderResponse.from_domain(order).model_dump()
        assert dumped["has_encrypted_deadline"] is True
        assert "h-in" not in str(dumped)


class TestIntentSchemas:
    def test_market_converts_to_domain(self) -> None:
        req = CreateIntentRequest.model_validate(
            {
                "market": {"asset0": "WETH", "asset1": "USDC", "fee": 500},
                "zero_for_one": False,
                "deadline": "2026-01-01T00:00:00Z",
                "encrypted_amount_in": "a",
                "encrypted_min_amount_out": "b",
            }
        )
        assert req.market.to_domain() == MarketKey("WETH", "USDC", 500)

    def test_intent_response_with_execution(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=UTC)
        intent = Intent(
            id="0xabc",
            owner="alice",
            market_id="mkt_1",
            zero_for_one=True,
            asset_in="WETH",
            asset_out="USDC",
            deadline=now,
            encrypted_amount_in=Ciphertext("a"),
            encrypted_min_amount_out=Ciphertext("b"),
            status=IntentStatus.EXECUTED,
        )
        resp = IntentResponse.from_domain(intent, Execution("0xabc", Ciphertext("o"), 4, now))
        assert resp.execution_checkpoint == 4
        assert resp.status == "EXECUTED"

    def test_blank_public_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ClaimRequest(public_key="")


class TestAfterSwapRequest:
    def test_params_and_delta(self) -> None:
        req = AfterSwapRequest.model_validate(
            {
                "sender": "alice",
                "market": {"asset0": "WETH", "asset1": "USDC"},
                "zero_for_one": True,
                "hook_data": "0x00",
                "delta": {"amount0": -1, "amount1": 950},
            }
        )
        assert req.params().zero_for_one is True
        assert req.delta.to_domain().output_leg(True) == 950
