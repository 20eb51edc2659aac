"""Raw SQL for intents and executions.

The two live in separate tables keyed by the same id; reading executions
never selects the amount-in / min-out columns.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_claim.domain.models import Execution, Intent
from src.cs_common.enums import IntentStatus
from src.cs_crypto.ciphertext import Ciphertext

_UPSERT_INTENT_SQL = text("""
    INSERT INTO intents (id, owner, market_id, zero_for_one, asset_in, asset_out,
        deadline, encrypted_amount_in, encrypted_min_amount_out, status,
        created_at, updated_at)
    VALUES (:id, :owner, :market_id, :zero_for_one, :asset_in, :asset_out,
        :deadline, :encrypted_amount_in, :encrypted_min_amount_out, :status,
        :created_at, :updated_at)
    ON CONFLICT (id) DO UPDATE
    SET status = EXCLUDED.status,
        updated_at = EXCLUDED.updated_at
""")

# Executions are immutable once written.
_INSERT_EXECUTION_SQL = text("""
    INSERT INTO executions (intent_id, encrypted_output, checkpoint, executed_at)
    VALUES (:intent_id, :encrypted_output, :checkpoint, :executed_at)
    ON CONFLICT (intent_id) DO NOTHING
""")

_LIST_INTENTS_SQL = text("""
    SELECT id, owner, market_id, zero_for_one, asset_in, asset_out, deadline,
           encrypted_amount_in, encrypted_min_amount_out, status, created_at, updated_at
    FROM intents
""")

_LIST_EXECUTIONS_SQL = text("""
    SELECT intent_id, encrypted_output, checkpoint, executed_at
    FROM executions
    ORDER BY checkpoint ASC
""")


def _row_to_intent(row: Any) -> Intent:
    return Intent(
        id=row.id,
        owner=row.owner,
        market_id=row.market_id,
        zero_for_one=row.zero_for_one,
        asset_in=row.asset_in,
        asset_out=row.asset_out,
        deadline=row.deadline,
        encrypted_amount_in=Ciphertext(row.encrypted_amount_in),
        encrypted_min_amount_out=Ciphertext(row.encrypted_min_amount_out),
        status=IntentStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_execution(row: Any) -> Execution:
    return Execution(
        intent_id=row.intent_id,
        encrypted_output=Ciphertext(row.encrypted_output),
        checkpoint=row.checkpoint,
        executed_at=row.executed_at,
    )


class IntentRepository:
    async def upsert_intent(self, intent: Intent, db: AsyncSession) -> None:
        await db.execute(
            _UPSERT_INTENT_SQL,
            {
                "id": intent.id,
                "owner": intent.owner,
                "market_id": intent.market_id,
                "zero_for_one": intent.zero_for_one,
                "asset_in": intent.asset_in,
                "asset_out": intent.asset_out,
                "deadline": intent.deadline,
                "encrypted_amount_in": intent.encrypted_amount_in.handle,
                "encrypted_min_amount_out": intent.encrypted_min_amount_out.handle,
                "status": intent.status.value,
                "created_at": intent.created_at,
                "updated_at": intent.updated_at,
            },
        )

    async def insert_execution(self, execution: Execution, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_EXECUTION_SQL,
            {
                "intent_id": execution.intent_id,
                "encrypted_output": execution.encrypted_output.handle,
                "checkpoint": execution.checkpoint,
                "executed_at": execution.executed_at,
            },
        )

    async def list_intents(self, db: AsyncSession) -> list[Intent]:
        result = await db.execute(_LIST_INTENTS_SQL)
        return [_row_to_intent(row) for row in result.fetchall()]

    async def list_executions(self, db: AsyncSession) -> list[Execution]:
        result = await db.execute(_LIST_EXECUTIONS_SQL)
        return [_row_to_execution(row) for row in result.fetchall()]
