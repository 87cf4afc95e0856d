"""Webhook handler functions for gatekeeper service."""

import asyncpg
from fastapi import Request

from connectors.stattaq.stattaq_webhook_handler import extract_stattaq_webhook_metadata
from src.ingest.gatekeeper.models import WebhookResponse
from src.ingest.gatekeeper.services.webhook_processor import WebhookProcessor
from src.utils.errors import RecordingError
from src.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


async def handle_stattaq_webhook(request: Request, conn: asyncpg.Connection) -> WebhookResponse:
    """Process a StatTaq webhook delivery.

    Always acknowledges with `received: true` unless the event could not be
    recorded, in which case RecordingError propagates so the sender retries.
    """
    body = await request.body()
    headers = dict(request.headers)
    metadata = extract_stattaq_webhook_metadata(body.decode("utf-8", errors="replace"))

    with LogContext(source="stattaq"):
        logger.info("StatTaq webhook received", **metadata)

        webhook_processor: WebhookProcessor = request.app.state.webhook_processor
        try:
            return await webhook_processor.process(conn, headers, body)
        except RecordingError:
            raise
        except Exception as e:
            # Acknowledge anyway: redelivering the same payload will not fix a handler failure
            logger.exception("StatTaq webhook processing failed", error=str(e))
            return WebhookResponse(error=str(e))
