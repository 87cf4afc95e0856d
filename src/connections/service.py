"""StatTaq account connection lifecycle: connect, OAuth callback, disconnect."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import asyncpg

from connectors.stattaq.stattaq_oauth import StatTaqOAuthClient, build_authorize_url
from src.clients.stattaq_sync import StatTaqSyncClient
from src.connections.models import ConnectResponse
from src.connections.oauth_state import consume_oauth_state, issue_oauth_state
from src.database.athletes import Athlete, AthletesRepository
from src.database.notifications import ActivityLogRepository
from src.database.stattaq_accounts import StatTaqAccount, StatTaqAccountsRepository
from src.utils.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

LINKED_TO_OTHER_ATHLETE = "This StatTaq account is already linked to another athlete"


async def _require_athlete(conn: asyncpg.Connection, profile_id: UUID) -> Athlete:
    athlete = await AthletesRepository.get_by_profile(conn, profile_id)
    if athlete is None:
        raise AuthorizationError("Only athletes can connect StatTaq accounts")
    return athlete


class StatTaqConnectionService:
    def __init__(
        self,
        oauth_client: StatTaqOAuthClient | None = None,
        sync_client: StatTaqSyncClient | None = None,
    ):
        self.oauth_client = oauth_client or StatTaqOAuthClient()
        self.sync_client = sync_client or StatTaqSyncClient()

    async def start_connect(self, conn: asyncpg.Connection, profile_id: UUID) -> ConnectResponse:
        """Issue an authorization URL for the calling athlete.

        Raises:
            AuthorizationError: caller is not an athlete
            ConflictError: the athlete already has an active link
        """
        athlete = await _require_athlete(conn, profile_id)

        existing = await StatTaqAccountsRepository.get_by_athlete(conn, athlete.id)
        if existing is not None and existing.is_active:
            raise ConflictError("StatTaq account already connected. Disconnect first to reconnect.")

        state = await issue_oauth_state(athlete.id)
        logger.info("StatTaq connect started", athlete_id=str(athlete.id))
        return ConnectResponse(auth_url=build_authorize_url(state, str(athlete.id)), state=state)

    async def complete_callback(
        self, conn: asyncpg.Connection, code: str | None, state: str | None, athlete_id: str | None
    ) -> StatTaqAccount:
        """Finish the OAuth flow: validate state, exchange the code and link the account.

        Raises:
            ValidationError: missing parameters or invalid state
            ConflictError: the StatTaq user is linked to a different athlete
            StatTaqOAuthError: StatTaq rejected the code or user lookup
        """
        if not code or not athlete_id:
            raise ValidationError("Missing required parameters")

        try:
            athlete_uuid = UUID(athlete_id)
        except ValueError as e:
            raise ValidationError("Invalid athlete_id") from e

        if not await consume_oauth_state(state, str(athlete_uuid)):
            raise ValidationError("Invalid or expired OAuth state")

        with LogContext(athlete_id=str(athlete_uuid)):
            tokens = await self.oauth_client.exchange_code(code)
            stattaq_user = await self.oauth_client.get_current_user(tokens.access_token)
            token_expires_at = datetime.now(UTC) + timedelta(seconds=tokens.expires_in)

            # Inactive links still own the StatTaq user id, so they count too
            existing_link = await StatTaqAccountsRepository.get_by_stattaq_user(
                conn, stattaq_user.id
            )
            if existing_link is not None and existing_link.athlete_id != athlete_uuid:
                raise ConflictError(LINKED_TO_OTHER_ATHLETE)

            try:
                account = await StatTaqAccountsRepository.upsert_connection(
                    conn,
                    athlete_id=athlete_uuid,
                    stattaq_user_id=stattaq_user.id,
                    stattaq_athlete_id=stattaq_user.athlete_id,
                    access_token=tokens.access_token,
                    refresh_token=tokens.refresh_token,
                    token_expires_at=token_expires_at,
                )
            except asyncpg.UniqueViolationError as e:
                # Lost a race with another athlete linking the same StatTaq user
                raise ConflictError(LINKED_TO_OTHER_ATHLETE) from e

            await self.sync_client.trigger_sync(athlete_uuid, "full")

            athlete = await AthletesRepository.get_by_id(conn, athlete_uuid)
            await ActivityLogRepository.append(
                conn,
                user_id=athlete.profile_id if athlete else None,
                action="stattaq_connected",
                entity_type="stattaq_account",
                entity_id=account.id,
                metadata={"stattaq_user_id": stattaq_user.id},
            )

            logger.info("StatTaq account connected", stattaq_user_id=stattaq_user.id)
            return account

    async def disconnect(self, conn: asyncpg.Connection, profile_id: UUID) -> None:
        """Deactivate the calling athlete's link. The link row is kept for audit."""
        athlete = await _require_athlete(conn, profile_id)

        account = await StatTaqAccountsRepository.get_by_athlete(conn, athlete.id)
        if account is None or not account.is_active:
            raise NotFoundError("No active StatTaq connection found")

        async with conn.transaction():
            await StatTaqAccountsRepository.deactivate(conn, account.id)
            await ActivityLogRepository.append(
                conn,
                user_id=profile_id,
                action="stattaq_disconnected",
                entity_type="stattaq_account",
                entity_id=account.id,
                metadata={"stattaq_user_id": account.stattaq_user_id},
            )

        logger.info("StatTaq account disconnected by athlete", athlete_id=str(athlete.id))
