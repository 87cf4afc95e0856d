"""Repository for athlete verification requests awaiting review."""

from uuid import UUID

import asyncpg

from src.verification.models import VerificationStatus, VerificationType


class VerificationRequestsRepository:
    @staticmethod
    async def close_pending(
        conn: asyncpg.Connection,
        athlete_id: UUID,
        verification_type: VerificationType,
        status: VerificationStatus,
        reviewer_profile_id: UUID,
        notes: str | None,
        rejection_reason: str | None,
    ) -> UUID | None:
        """Close the oldest pending request for this athlete and claim type.

        Returns:
            The closed request id, or None when nothing was pending
        """
        return await conn.fetchval(
            """
            UPDATE verification_requests
            SET status = $3,
                reviewed_by = $4,
                reviewed_at = NOW(),
                review_notes = $5,
                rejection_reason = $6,
                updated_at = NOW()
            WHERE id = (
                SELECT id FROM verification_requests
                WHERE athlete_id = $1 AND verification_type = $2 AND status = 'pending'
                ORDER BY created_at ASC
                LIMIT 1
                FOR UPDATE
            )
            RETURNING id
            """,
            athlete_id,
            verification_type.value,
            status.value,
            reviewer_profile_id,
            notes,
            rejection_reason,
        )
