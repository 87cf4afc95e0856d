"""Routing of recorded, linked StatTaq events to their handlers."""

from dataclasses import dataclass
from enum import Enum

import asyncpg

from connectors.stattaq.stattaq_models import SYNC_EVENT_TYPES, StatTaqEventType
from src.clients.stattaq_sync import StatTaqSyncClient
from src.database.athletes import AthletesRepository
from src.database.notifications import Notification, NotificationsRepository, NotificationType
from src.database.stattaq_accounts import StatTaqAccount, StatTaqAccountsRepository
from src.database.stattaq_webhooks import InboundEvent
from src.utils.logging import get_logger

logger = get_logger(__name__)

RECONNECT_URL = "/settings/connections"


class DispatchAction(str, Enum):
    SYNC_TRIGGERED = "sync_triggered"
    SYNC_TRIGGER_FAILED = "sync_trigger_failed"
    ACCOUNT_DEACTIVATED = "account_deactivated"
    ALREADY_INACTIVE = "already_inactive"
    IGNORED = "ignored"


@dataclass
class DispatchOutcome:
    action: DispatchAction
    # Downstream failure worth recording on the event; never blocks processed marking
    error: str | None = None


def build_disconnect_notification(profile_id) -> Notification:
    return Notification(
        user_id=profile_id,
        type=NotificationType.SYSTEM,
        title="StatTaq Disconnected",
        body="Your StatTaq account has been disconnected. Reconnect to continue syncing your data.",
        action_url=RECONNECT_URL,
        action_label="Reconnect",
    )


class EventDispatcher:
    """Dispatches an event to exactly one handler based on its event type."""

    def __init__(self, sync_client: StatTaqSyncClient):
        self.sync_client = sync_client

    async def dispatch(
        self, conn: asyncpg.Connection, event: InboundEvent, account: StatTaqAccount
    ) -> DispatchOutcome:
        event_type = StatTaqEventType.parse(event.event_type)

        if event_type in SYNC_EVENT_TYPES:
            return await self._trigger_sync(account, event_type)
        if event_type == StatTaqEventType.ACCOUNT_DISCONNECTED:
            return await self._deactivate_account(conn, account)

        logger.info("Unhandled StatTaq event type", event_type=event.event_type)
        return DispatchOutcome(action=DispatchAction.IGNORED)

    async def _trigger_sync(
        self, account: StatTaqAccount, event_type: StatTaqEventType
    ) -> DispatchOutcome:
        result = await self.sync_client.trigger_sync(account.athlete_id, event_type.namespace)
        if result.triggered:
            return DispatchOutcome(action=DispatchAction.SYNC_TRIGGERED)
        return DispatchOutcome(action=DispatchAction.SYNC_TRIGGER_FAILED, error=result.error)

    async def _deactivate_account(
        self, conn: asyncpg.Connection, account: StatTaqAccount
    ) -> DispatchOutcome:
        """Deactivate the link and tell the athlete to reconnect.

        The notification is only sent by the call that actually flipped the link,
        so racing deliveries produce a single notification.
        """
        async with conn.transaction():
            deactivated = await StatTaqAccountsRepository.deactivate(conn, account.id)
            if not deactivated:
                logger.info("StatTaq account already inactive", account_id=str(account.id))
                return DispatchOutcome(action=DispatchAction.ALREADY_INACTIVE)

            athlete = await AthletesRepository.get_by_id(conn, account.athlete_id)
            if athlete is not None:
                await NotificationsRepository.create(
                    conn, build_disconnect_notification(athlete.profile_id)
                )
            else:
                logger.warning(
                    "Linked athlete missing, skipping disconnect notification",
                    athlete_id=str(account.athlete_id),
                )

        logger.info("StatTaq account deactivated by webhook", account_id=str(account.id))
        return DispatchOutcome(action=DispatchAction.ACCOUNT_DEACTIVATED)
