"""Order domain model — pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.cs_common.enums import OrderStatus
from src.cs_crypto.ciphertext import Ciphertext


@dataclass
class Order:
    id: str
    owner: str
    market_id: str
    asset_in: str
    asset_out: str
    # Opaque to everyone but the crypto backend and the key holder
    encrypted_amount_in: Ciphertext
    encrypted_min_amount_out: Ciphertext
    encrypted_deadline: Ciphertext | None = None
    # Optional public expiry; the only path to EXPIRED
    expires_at: datetime | None = None
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime | None = None
    executed_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == OrderStatus.PENDING

    def trades(self, asset_in: str, asset_out: str) -> bool:
        return self.asset_in == asset_in and self.asset_out == asset_out

    def is_past_expiry(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def public_fields(self) -> dict[str, Any]:
        """The fields that may appear in events and logs."""
        return {
            "order_id": self.id,
            "owner": self.owner,
            "market_id": self.market_id,
            "asset_in": self.asset_in,
            "asset_out": self.asset_out,
            "status": self.status.value,
        }
