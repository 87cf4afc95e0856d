"""Repository for athlete ↔ StatTaq account links (the `stattaq_accounts` table).

Links are never deleted. Disconnecting flips `is_active` off and stamps
`disconnected_at` so the history stays available for audit.
"""

from datetime import datetime
from uuid import UUID

import asyncpg

_COLUMNS = """
    id, athlete_id, stattaq_user_id, stattaq_athlete_id, sync_enabled,
    is_active, connected_at, disconnected_at
"""


class StatTaqAccount:
    """External account link data model (tokens are intentionally not loaded)."""

    def __init__(self, row: asyncpg.Record):
        self.id: UUID = row["id"]
        self.athlete_id: UUID = row["athlete_id"]
        self.stattaq_user_id: str = row["stattaq_user_id"]
        self.stattaq_athlete_id: str | None = row["stattaq_athlete_id"]
        self.sync_enabled: bool = bool(row["sync_enabled"])
        self.is_active: bool = bool(row["is_active"])
        self.connected_at: datetime | None = row["connected_at"]
        self.disconnected_at: datetime | None = row["disconnected_at"]


class StatTaqAccountsRepository:
    """Lookups and state changes for StatTaq account links."""

    @staticmethod
    async def get_active_by_stattaq_user(
        conn: asyncpg.Connection, stattaq_user_id: str
    ) -> StatTaqAccount | None:
        row = await conn.fetchrow(
            f"""
            SELECT {_COLUMNS}
            FROM stattaq_accounts
            WHERE stattaq_user_id = $1 AND is_active = true
            """,
            stattaq_user_id,
        )
        return StatTaqAccount(row) if row else None

    @staticmethod
    async def get_by_stattaq_user(
        conn: asyncpg.Connection, stattaq_user_id: str
    ) -> StatTaqAccount | None:
        """Any link for this StatTaq user, active or not. `stattaq_user_id` is unique."""
        row = await conn.fetchrow(
            f"SELECT {_COLUMNS} FROM stattaq_accounts WHERE stattaq_user_id = $1",
            stattaq_user_id,
        )
        return StatTaqAccount(row) if row else None

    @staticmethod
    async def get_by_athlete(conn: asyncpg.Connection, athlete_id: UUID) -> StatTaqAccount | None:
        row = await conn.fetchrow(
            f"SELECT {_COLUMNS} FROM stattaq_accounts WHERE athlete_id = $1",
            athlete_id,
        )
        return StatTaqAccount(row) if row else None

    @staticmethod
    async def upsert_connection(
        conn: asyncpg.Connection,
        athlete_id: UUID,
        stattaq_user_id: str,
        stattaq_athlete_id: str | None,
        access_token: str,
        refresh_token: str | None,
        token_expires_at: datetime,
    ) -> StatTaqAccount:
        """Create or reactivate the athlete's link after a completed OAuth flow."""
        row = await conn.fetchrow(
            f"""
            INSERT INTO stattaq_accounts (
                athlete_id, stattaq_user_id, stattaq_athlete_id, access_token,
                refresh_token, token_expires_at, connected_at, is_active,
                sync_enabled, disconnected_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, NOW(), true, true, NULL)
            ON CONFLICT (athlete_id) DO UPDATE SET
                stattaq_user_id = EXCLUDED.stattaq_user_id,
                stattaq_athlete_id = EXCLUDED.stattaq_athlete_id,
                access_token = EXCLUDED.access_token,
                refresh_token = EXCLUDED.refresh_token,
                token_expires_at = EXCLUDED.token_expires_at,
                connected_at = EXCLUDED.connected_at,
                is_active = true,
                sync_enabled = true,
                disconnected_at = NULL,
                updated_at = NOW()
            RETURNING {_COLUMNS}
            """,
            athlete_id,
            stattaq_user_id,
            stattaq_athlete_id,
            access_token,
            refresh_token,
            token_expires_at,
        )
        return StatTaqAccount(row)

    @staticmethod
    async def deactivate(conn: asyncpg.Connection, account_id: UUID) -> bool:
        """Deactivate a link and disable syncing.

        Returns:
            True if the link was active and is now inactive, False if it was already inactive
        """
        row = await conn.fetchrow(
            """
            UPDATE stattaq_accounts
            SET is_active = false, sync_enabled = false, disconnected_at = NOW(), updated_at = NOW()
            WHERE id = $1 AND is_active = true
            RETURNING id
            """,
            account_id,
        )
        return row is not None
