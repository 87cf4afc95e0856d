"""Route definitions for gatekeeper service."""

import asyncpg
from fastapi import APIRouter, Depends, Request

from src.clients.supabase import get_db_connection
from src.ingest.gatekeeper.models import ErrorResponse, WebhookResponse
from src.ingest.gatekeeper.webhook_handlers import handle_stattaq_webhook

router = APIRouter()


@router.post(
    "/webhooks/stattaq",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    responses={503: {"model": ErrorResponse, "description": "Event could not be recorded"}},
)
async def stattaq_webhook(
    request: Request, conn: asyncpg.Connection = Depends(get_db_connection)
) -> WebhookResponse:
    """Process StatTaq data-change and account webhooks."""
    return await handle_stattaq_webhook(request, conn)
