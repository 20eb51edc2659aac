"""Intent/Execution domain models — pure dataclasses.

An Intent and its Execution share an id but live in separate tables, so
reading a claim never touches the amount-in / min-out ciphertexts.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.cs_common.enums import IntentStatus
from src.cs_crypto.ciphertext import Ciphertext


@dataclass
class Intent:
    id: str
    owner: str
    market_id: str
    zero_for_one: bool  # trade direction: True sells asset0 for asset1
    asset_in: str
    asset_out: str
    deadline: datetime
    encrypted_amount_in: Ciphertext
    encrypted_min_amount_out: Ciphertext
    status: IntentStatus = IntentStatus.PENDING
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_execution(self) -> bool:
        return self.status in (IntentStatus.EXECUTED, IntentStatus.CLAIMED)

    def public_fields(self) -> dict[str, Any]:
        return {
            "intent_id": self.id,
            "owner": self.owner,
            "market_id": self.market_id,
            "zero_for_one": self.zero_for_one,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class Execution:
    intent_id: str
    encrypted_output: Ciphertext
    checkpoint: int  # venue execution sequence number at which the output was produced
    executed_at: datetime
