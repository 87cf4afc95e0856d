"""Repository for athlete rows and their per-claim verification flags."""

from uuid import UUID

import asyncpg

from src.utils.errors import NotFoundError
from src.verification.models import VerificationClaim, VerificationType

# Column pairs per claim type. Column names are never built from request input.
_CLAIM_COLUMNS: dict[VerificationType, tuple[str, str]] = {
    VerificationType.ENROLLMENT: ("enrollment_verified", "enrollment_verified_at"),
    VerificationType.SPORT: ("sport_verified", "sport_verified_at"),
    VerificationType.GRADES: ("grades_verified", "grades_verified_at"),
    VerificationType.IDENTITY: ("identity_verified", "identity_verified_at"),
}


class Athlete:
    """Athlete data model (only the fields the gatekeeper needs)."""

    def __init__(self, row: asyncpg.Record):
        self.id: UUID = row["id"]
        self.profile_id: UUID = row["profile_id"]
        self.school_id: UUID | None = row["school_id"]


class AthletesRepository:
    @staticmethod
    async def get_by_id(conn: asyncpg.Connection, athlete_id: UUID) -> Athlete | None:
        row = await conn.fetchrow(
            "SELECT id, profile_id, school_id FROM athletes WHERE id = $1",
            athlete_id,
        )
        return Athlete(row) if row else None

    @staticmethod
    async def get_by_profile(conn: asyncpg.Connection, profile_id: UUID) -> Athlete | None:
        row = await conn.fetchrow(
            "SELECT id, profile_id, school_id FROM athletes WHERE profile_id = $1",
            profile_id,
        )
        return Athlete(row) if row else None

    @staticmethod
    async def set_claim(
        conn: asyncpg.Connection,
        athlete_id: UUID,
        verification_type: VerificationType,
        verified: bool,
    ) -> VerificationClaim:
        """Set a claim flag.

        Setting it true stamps the verification time; setting it false clears the
        timestamp, which revokes any standing verification.
        """
        flag_column, time_column = _CLAIM_COLUMNS[verification_type]
        row = await conn.fetchrow(
            f"""
            UPDATE athletes
            SET {flag_column} = $2,
                {time_column} = CASE WHEN $2 THEN NOW() ELSE NULL END,
                updated_at = NOW()
            WHERE id = $1
            RETURNING id, {flag_column} AS verified, {time_column} AS verified_at
            """,
            athlete_id,
            verified,
        )
        if row is None:
            raise NotFoundError("Athlete not found")
        return VerificationClaim(
            athlete_id=row["id"],
            verification_type=verification_type,
            verified=row["verified"],
            verified_at=row["verified_at"],
        )
