"""Internal notification fan-out endpoint."""

from uuid import UUID

import asyncpg
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.auth.supabase_jwt import require_service_role
from src.clients.supabase import get_db_connection
from src.database.notifications import Notification, NotificationsRepository, NotificationType
from src.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/notifications")


class SendNotificationRequest(BaseModel):
    user_ids: list[UUID] = Field(min_length=1)
    type: NotificationType
    title: str = Field(min_length=1)
    body: str | None = None
    related_type: str | None = None
    related_id: UUID | None = None
    action_url: str | None = None
    action_label: str | None = None


class SendNotificationResponse(BaseModel):
    success: bool = True
    sent: int


@router.post(
    "/send",
    response_model=SendNotificationResponse,
    dependencies=[Depends(require_service_role)],
)
async def send_notifications(
    request: SendNotificationRequest,
    conn: asyncpg.Connection = Depends(get_db_connection),
) -> SendNotificationResponse:
    """Insert one notification per recipient."""
    notifications = [
        Notification(
            user_id=user_id,
            type=request.type,
            title=request.title,
            body=request.body,
            related_type=request.related_type,
            related_id=request.related_id,
            action_url=request.action_url,
            action_label=request.action_label,
        )
        for user_id in request.user_ids
    ]

    sent = await NotificationsRepository.create_many(conn, notifications)
    logger.info("Notifications sent", count=sent, notification_type=request.type.value)
    return SendNotificationResponse(sent=sent)
