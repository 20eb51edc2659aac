"""Ledger keys."""

from dataclasses import dataclass

from src.cs_common.enums import BalanceBook


@dataclass(frozen=True)
class BalanceKey:
    identity: str
    asset: str
    book: BalanceBook = BalanceBook.AVAILABLE
