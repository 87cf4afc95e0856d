"""StatTaq webhook processing pipeline.

verify signature → record event → resolve linked athlete → dispatch → mark processed

Rejected signatures and malformed payloads are never recorded. Recording happens
before any side effect and is the only step whose failure surfaces to the sender
(as a retryable 503); everything else is acknowledged with 200 so the sender
does not redeliver payloads that can never succeed.
"""

from typing import Any

import asyncpg
from pydantic import ValidationError as PydanticValidationError

from connectors.stattaq.stattaq_models import StatTaqWebhookPayload
from connectors.stattaq.stattaq_webhook_handler import SIGNATURE_HEADER, StatTaqWebhookVerifier
from src.clients.redis import ping as redis_ping
from src.clients.stattaq_sync import StatTaqSyncClient
from src.clients.supabase import SupabaseDB
from src.database.stattaq_accounts import StatTaqAccountsRepository
from src.database.stattaq_webhooks import StatTaqWebhooksRepository
from src.ingest.gatekeeper.event_dispatcher import EventDispatcher
from src.ingest.gatekeeper.models import WebhookResponse
from src.ingest.gatekeeper.verification import VerificationOutcome, WebhookVerifier
from src.utils.errors import RecordingError
from src.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


class WebhookProcessor:
    """Runs inbound StatTaq deliveries through the pipeline and reports service health."""

    def __init__(
        self,
        db: SupabaseDB | None = None,
        verifier: WebhookVerifier | None = None,
        dispatcher: EventDispatcher | None = None,
    ):
        self.db = db or SupabaseDB()
        self.verifier = verifier or StatTaqWebhookVerifier()
        self.dispatcher = dispatcher or EventDispatcher(StatTaqSyncClient())

    async def initialize(self) -> None:
        await self.db.connect()

    async def cleanup(self) -> None:
        await self.db.close()

    async def process(
        self, conn: asyncpg.Connection, headers: dict[str, str], body: bytes
    ) -> WebhookResponse:
        verification = self.verifier.verify(headers, body)
        if not verification.accepted:
            logger.warning("Rejected StatTaq webhook", reason=verification.error)
            return WebhookResponse(error=verification.error or "Invalid webhook signature")
        if verification.outcome == VerificationOutcome.SKIPPED_UNCONFIGURED:
            logger.warning("⚠️ Skipping StatTaq webhook verification: STATTAQ_WEBHOOK_SECRET not set")

        try:
            payload = StatTaqWebhookPayload.model_validate_json(body)
        except PydanticValidationError as e:
            logger.warning("Malformed StatTaq webhook payload", error_count=e.error_count())
            return WebhookResponse(error="Invalid webhook payload")

        with LogContext(webhook_id=payload.id, event_type=payload.event_type):
            return await self._process_verified(
                conn, payload, headers.get(SIGNATURE_HEADER), verification.outcome
            )

    async def _process_verified(
        self,
        conn: asyncpg.Connection,
        payload: StatTaqWebhookPayload,
        signature: str | None,
        verification_outcome: VerificationOutcome,
    ) -> WebhookResponse:
        try:
            recorded = await StatTaqWebhooksRepository.record(
                conn,
                webhook_id=payload.id,
                event_type=payload.event_type,
                payload=payload.model_dump(mode="json"),
                signature=signature,
                stattaq_user_id=payload.data.stattaq_user_id,
                verification_status=verification_outcome.value,
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error("Failed to record StatTaq webhook", error=str(e))
            raise RecordingError("Failed to record webhook") from e

        event = recorded.event
        if recorded.duplicate and event.processed:
            logger.info("Duplicate StatTaq delivery already processed")
            return WebhookResponse()

        account = await StatTaqAccountsRepository.get_active_by_stattaq_user(
            conn, payload.data.stattaq_user_id
        )
        if account is None:
            logger.info(
                "No active StatTaq link for event, dispatch skipped",
                stattaq_user_id=payload.data.stattaq_user_id,
            )
            return WebhookResponse()

        with LogContext(athlete_id=str(account.athlete_id)):
            if event.athlete_id != account.athlete_id:
                await StatTaqWebhooksRepository.set_athlete(conn, event.id, account.athlete_id)

            outcome = await self.dispatcher.dispatch(conn, event, account)
            marked = await StatTaqWebhooksRepository.mark_processed(conn, event.id, outcome.error)
            logger.info(
                "StatTaq webhook processed",
                action=outcome.action.value,
                newly_marked=marked,
            )

        return WebhookResponse()

    async def health_check(self) -> dict[str, Any]:
        """Perform health check of all dependencies.

        Returns:
            Dictionary with health status of each component
        """
        health_status: dict[str, Any] = {"status": "healthy", "components": {}}

        try:
            if await self.db.ping():
                health_status["components"]["database"] = "healthy"
            else:
                health_status["components"]["database"] = "not initialized"
                health_status["status"] = "unhealthy"
        except (asyncpg.PostgresError, OSError) as e:
            health_status["components"]["database"] = f"unhealthy: {e}"
            health_status["status"] = "unhealthy"

        if await redis_ping():
            health_status["components"]["redis"] = "healthy"
        else:
            health_status["components"]["redis"] = "unhealthy: ping failed"
            health_status["status"] = "unhealthy"

        return health_status
