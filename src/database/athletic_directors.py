"""Repository for athletic director permission records."""

from uuid import UUID

import asyncpg

from src.verification.models import ReviewerPermission


class AthleticDirectorsRepository:
    @staticmethod
    async def get_permissions(
        conn: asyncpg.Connection, profile_id: UUID
    ) -> ReviewerPermission | None:
        """Get the reviewer permissions for a profile, or None if it is not a director."""
        row = await conn.fetchrow(
            """
            SELECT id, profile_id, school_id,
                   can_verify_enrollment, can_verify_sport, can_verify_grades
            FROM athletic_directors
            WHERE profile_id = $1
            """,
            profile_id,
        )
        if row is None:
            return None

        return ReviewerPermission(
            id=row["id"],
            profile_id=row["profile_id"],
            school_id=row["school_id"],
            can_verify_enrollment=bool(row["can_verify_enrollment"]),
            can_verify_sport=bool(row["can_verify_sport"]),
            can_verify_grades=bool(row["can_verify_grades"]),
        )
