"""One ciphertext handle per (identity, asset, book).

Balances are overwritten in place: a homomorphic update produces a new
handle and the old one is no longer meaningful.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.enums import BalanceBook
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_ledger.domain.models import BalanceKey

_UPSERT_BALANCE_SQL = text("""
    INSERT INTO encrypted_balances (identity, asset, book, handle)
    VALUES (:identity, :asset, :book, :handle)
    ON CONFLICT (identity, asset, book) DO UPDATE
    SET handle = EXCLUDED.handle,
        updated_at = NOW()
""")

_LIST_BALANCES_SQL = text("""
    SELECT identity, asset, book, handle FROM encrypted_balances
""")


class BalanceRepository:
    async def upsert(self, key: BalanceKey, handle: Ciphertext, db: AsyncSession) -> None:
        await db.execute(
            _UPSERT_BALANCE_SQL,
            {
                "identity": key.identity,
                "asset": key.asset,
                "book": key.book.value,
                "handle": handle.handle,
            },
        )

    async def list_all(self, db: AsyncSession) -> dict[BalanceKey, Ciphertext]:
        result = await db.execute(_LIST_BALANCES_SQL)
        return {
            BalanceKey(row.identity, row.asset, BalanceBook(row.book)): Ciphertext(row.handle)
            for row in result.fetchall()
        }
