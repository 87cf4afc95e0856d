"""Trigger for the StatTaq sync edge function.

The sync itself runs elsewhere (`functions/v1/stattaq-sync`). Triggers are best
effort: failures are logged and reported to the caller, never raised.
"""

from dataclasses import dataclass
from uuid import UUID

import httpx

from src.utils.config import get_supabase_url
from src.utils.http_auth import SupabaseServiceAuth
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SyncTriggerResult:
    triggered: bool
    error: str | None = None


class StatTaqSyncClient:
    """Posts sync requests to the stattaq-sync function."""

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds

    async def trigger_sync(self, athlete_id: UUID, sync_type: str) -> SyncTriggerResult:
        """Ask the sync function to refresh `sync_type` data for an athlete."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                auth=SupabaseServiceAuth(),
            ) as client:
                response = await client.post(
                    f"{get_supabase_url()}/functions/v1/stattaq-sync",
                    json={"athlete_id": str(athlete_id), "sync_type": sync_type},
                )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "StatTaq sync trigger failed",
                athlete_id=str(athlete_id),
                sync_type=sync_type,
                error=str(exc),
            )
            return SyncTriggerResult(triggered=False, error=str(exc))

        if not 200 <= response.status_code < 300:
            error = f"HTTP {response.status_code}"
            logger.warning(
                "StatTaq sync trigger failed",
                athlete_id=str(athlete_id),
                sync_type=sync_type,
                response_status=response.status_code,
            )
            return SyncTriggerResult(triggered=False, error=error)

        logger.info("StatTaq sync triggered", athlete_id=str(athlete_id), sync_type=sync_type)
        return SyncTriggerResult(triggered=True)
