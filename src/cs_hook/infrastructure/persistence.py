"""Persistence for the single hook_bindings row.

The table holds at most one row (CHECK id = 1) and the insert never
overwrites, so the binding stays one-time at the storage level too.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_INSERT_BINDING_SQL = text("""
    INSERT INTO hook_bindings (id, coordinator_identity)
    VALUES (1, :coordinator_identity)
    ON CONFLICT (id) DO NOTHING
""")

_GET_BINDING_SQL = text("""
    SELECT coordinator_identity FROM hook_bindings WHERE id = 1
""")


class BindingRepository:
    async def save(self, coordinator_identity: str, db: AsyncSession) -> None:
        await db.execute(_INSERT_BINDING_SQL, {"coordinator_identity": coordinator_identity})

    async def get(self, db: AsyncSession) -> str | None:
        result = await db.execute(_GET_BINDING_SQL)
        row = result.fetchone()
        return row.coordinator_identity if row else None
