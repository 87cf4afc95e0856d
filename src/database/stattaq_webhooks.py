"""Repository for inbound StatTaq webhook events (the `stattaq_webhooks` table)."""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

import asyncpg

from src.utils.errors import RecordingError

_COLUMNS = """
    id, webhook_id, event_type, payload, signature, stattaq_user_id,
    athlete_id, verification_status, processed, processed_at, processing_error, received_at
"""


class InboundEvent:
    """Stored webhook event."""

    def __init__(self, row: asyncpg.Record):
        self.id: UUID = row["id"]
        self.webhook_id: str = row["webhook_id"]
        self.event_type: str = row["event_type"]
        payload = row["payload"]
        self.payload: dict[str, Any] = json.loads(payload) if isinstance(payload, str) else payload
        self.signature: str | None = row["signature"]
        self.stattaq_user_id: str | None = row["stattaq_user_id"]
        self.athlete_id: UUID | None = row["athlete_id"]
        self.verification_status: str = row["verification_status"]
        self.processed: bool = bool(row["processed"])
        self.processed_at: datetime | None = row["processed_at"]
        self.processing_error: str | None = row["processing_error"]
        self.received_at: datetime = row["received_at"]


class RecordResult:
    """Outcome of recording a delivery: the stored event and whether it already existed."""

    def __init__(self, event: InboundEvent, duplicate: bool):
        self.event = event
        self.duplicate = duplicate


class StatTaqWebhooksRepository:
    """CRUD operations on recorded webhook events."""

    @staticmethod
    async def record(
        conn: asyncpg.Connection,
        webhook_id: str,
        event_type: str,
        payload: dict[str, Any],
        signature: str | None,
        stattaq_user_id: str | None,
        verification_status: str,
    ) -> RecordResult:
        """Insert the event once per external webhook id.

        A redelivery with the same webhook id leaves the stored row untouched and
        returns it with `duplicate=True`.
        """
        row = await conn.fetchrow(
            f"""
            INSERT INTO stattaq_webhooks (
                webhook_id, event_type, payload, signature, stattaq_user_id, verification_status
            )
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT (webhook_id) DO NOTHING
            RETURNING {_COLUMNS}
            """,
            webhook_id,
            event_type,
            json.dumps(payload),
            signature,
            stattaq_user_id,
            verification_status,
        )
        if row is not None:
            return RecordResult(InboundEvent(row), duplicate=False)

        existing = await conn.fetchrow(
            f"SELECT {_COLUMNS} FROM stattaq_webhooks WHERE webhook_id = $1",
            webhook_id,
        )
        if existing is None:
            # Conflicting row vanished between the insert and the read
            raise RecordingError(f"Webhook {webhook_id} conflicted but could not be read back")
        return RecordResult(InboundEvent(existing), duplicate=True)

    @staticmethod
    async def set_athlete(conn: asyncpg.Connection, event_id: UUID, athlete_id: UUID) -> None:
        await conn.execute(
            "UPDATE stattaq_webhooks SET athlete_id = $2 WHERE id = $1",
            event_id,
            athlete_id,
        )

    @staticmethod
    async def mark_processed(
        conn: asyncpg.Connection, event_id: UUID, processing_error: str | None = None
    ) -> bool:
        """Mark an event processed. Only the first call for an event has any effect.

        Returns:
            True if this call marked the event, False if it was already processed
        """
        row = await conn.fetchrow(
            """
            UPDATE stattaq_webhooks
            SET processed = true, processed_at = NOW(), processing_error = $2
            WHERE id = $1 AND processed = false
            RETURNING id
            """,
            event_id,
            processing_error,
        )
        return row is not None
