"""Repository for user notifications and the activity (audit) log."""

import json
from enum import Enum
from typing import Any
from uuid import UUID

import asyncpg
from pydantic import BaseModel


class NotificationType(str, Enum):
    DEAL_OFFER = "deal_offer"
    VERIFICATION_UPDATE = "verification_update"
    MESSAGE = "message"
    SYSTEM = "system"


class Notification(BaseModel):
    """A notification addressed to one user (profile)."""

    user_id: UUID
    type: NotificationType
    title: str
    body: str | None = None
    related_type: str | None = None
    related_id: UUID | None = None
    action_url: str | None = None
    action_label: str | None = None


_INSERT_NOTIFICATION = """
    INSERT INTO notifications (
        user_id, type, title, body, related_type, related_id, action_url, action_label
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
"""


def _notification_args(notification: Notification) -> tuple:
    return (
        notification.user_id,
        notification.type.value,
        notification.title,
        notification.body,
        notification.related_type,
        notification.related_id,
        notification.action_url,
        notification.action_label,
    )


class NotificationsRepository:
    @staticmethod
    async def create(conn: asyncpg.Connection, notification: Notification) -> UUID:
        return await conn.fetchval(
            _INSERT_NOTIFICATION + " RETURNING id", *_notification_args(notification)
        )

    @staticmethod
    async def create_many(conn: asyncpg.Connection, notifications: list[Notification]) -> int:
        if not notifications:
            return 0
        await conn.executemany(
            _INSERT_NOTIFICATION, [_notification_args(n) for n in notifications]
        )
        return len(notifications)


class ActivityLogRepository:
    @staticmethod
    async def append(
        conn: asyncpg.Connection,
        user_id: UUID | None,
        action: str,
        entity_type: str | None = None,
        entity_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UUID:
        return await conn.fetchval(
            """
            INSERT INTO activity_log (user_id, action, entity_type, entity_id, metadata)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING id
            """,
            user_id,
            action,
            entity_type,
            entity_id,
            json.dumps(metadata) if metadata is not None else None,
        )
