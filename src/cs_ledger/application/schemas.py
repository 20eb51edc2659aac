"""Pydantic schemas for the encrypted ledger API.

Amounts cross this boundary only as ciphertext handles (requests) or as
base64 sealed blobs (responses).
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.cs_common.schema_utils import require_non_blank


class EncryptedAmountRequest(BaseModel):
    asset: str = Field(..., max_length=64)
    encrypted_amount: str = Field(..., description="Ciphertext handle")

    @field_validator("asset", "encrypted_amount")
    @classmethod
    def non_blank(cls, v: str) -> str:
        return require_non_blank(v)


class SealBalanceRequest(BaseModel):
    asset: str = Field(..., max_length=64)
    public_key: str = Field(..., description="Recipient public key (hex)")
    book: Literal["AVAILABLE", "ESCROW"] = "AVAILABLE"

    @field_validator("asset", "public_key")
    @classmethod
    def non_blank(cls, v: str) -> str:
        return require_non_blank(v)


class LedgerMutationResponse(BaseModel):
    identity: str
    asset: str
    operation: Literal["DEPOSIT", "WITHDRAW"]


class SealedBalanceResponse(BaseModel):
    identity: str
    asset: str
    book: str
    sealed_balance: str  # base64
