"""Athletic-director verification decisions.

A decision passes three checks before anything is written:

1. the caller is a registered athletic director,
2. the director holds the capability flag for the claim type (identity never passes),
3. the athlete attends the director's school.

The claim update, pending-request closure, athlete notification and activity log
entry are then written in one transaction, so a claim never changes without its
notification and audit entry.
"""

from uuid import UUID

import asyncpg

from src.database.athletes import Athlete, AthletesRepository
from src.database.athletic_directors import AthleticDirectorsRepository
from src.database.notifications import (
    ActivityLogRepository,
    Notification,
    NotificationsRepository,
    NotificationType,
)
from src.database.verification_requests import VerificationRequestsRepository
from src.utils.errors import AuthorizationError, NotFoundError, PermissionDeniedError, ScopeError
from src.utils.logging import LogContext, get_logger

from .models import (
    ReviewerPermission,
    VerificationClaim,
    VerificationDecisionRequest,
    VerificationStatus,
)

logger = get_logger(__name__)


def build_decision_notification(
    athlete: Athlete, decision: VerificationDecisionRequest
) -> Notification:
    claim = decision.verification_type.value
    if decision.status == VerificationStatus.APPROVED:
        title = f"{claim.capitalize()} Verification Approved"
        body = f"Your {claim} has been verified!"
    else:
        title = f"{claim.capitalize()} Verification Update"
        body = f"Your {claim} verification needs attention. {decision.rejection_reason or ''}".rstrip()

    return Notification(
        user_id=athlete.profile_id,
        type=NotificationType.VERIFICATION_UPDATE,
        title=title,
        body=body,
        related_type="athlete",
        related_id=athlete.id,
    )


class VerificationService:
    """Authorizes and applies verification decisions."""

    @staticmethod
    async def authorize(
        conn: asyncpg.Connection,
        reviewer_profile_id: UUID,
        decision: VerificationDecisionRequest,
    ) -> tuple[ReviewerPermission, Athlete]:
        """Run the role, capability and school checks. Writes nothing.

        Raises:
            AuthorizationError: caller is not an athletic director
            PermissionDeniedError: director lacks the flag for this claim type
            NotFoundError: athlete does not exist
            ScopeError: athlete is at a different school
        """
        reviewer = await AthleticDirectorsRepository.get_permissions(conn, reviewer_profile_id)
        if reviewer is None:
            raise AuthorizationError("User is not an athletic director")

        if not reviewer.can_verify(decision.verification_type):
            raise PermissionDeniedError(
                f"You don't have permission to verify {decision.verification_type.value}"
            )

        athlete = await AthletesRepository.get_by_id(conn, decision.athlete_id)
        if athlete is None:
            raise NotFoundError("Athlete not found")

        if reviewer.school_id is None or athlete.school_id != reviewer.school_id:
            raise ScopeError("Athlete is not at your school")

        return reviewer, athlete

    @staticmethod
    async def apply_decision(
        conn: asyncpg.Connection,
        reviewer_profile_id: UUID,
        decision: VerificationDecisionRequest,
    ) -> VerificationClaim:
        """Authorize and apply a decision.

        Rejection clears the flag and its timestamp, so rejecting a previously
        approved claim revokes it.
        """
        with LogContext(
            reviewer_id=str(reviewer_profile_id),
            athlete_id=str(decision.athlete_id),
            verification_type=decision.verification_type.value,
        ):
            _, athlete = await VerificationService.authorize(conn, reviewer_profile_id, decision)

            async with conn.transaction():
                claim = await AthletesRepository.set_claim(
                    conn,
                    athlete.id,
                    decision.verification_type,
                    verified=decision.status == VerificationStatus.APPROVED,
                )

                request_id = await VerificationRequestsRepository.close_pending(
                    conn,
                    athlete_id=athlete.id,
                    verification_type=decision.verification_type,
                    status=decision.status,
                    reviewer_profile_id=reviewer_profile_id,
                    notes=decision.notes,
                    rejection_reason=decision.rejection_reason,
                )

                await NotificationsRepository.create(
                    conn, build_decision_notification(athlete, decision)
                )

                await ActivityLogRepository.append(
                    conn,
                    user_id=reviewer_profile_id,
                    action=f"athlete_{decision.verification_type.value}_{decision.status.value}",
                    entity_type="athlete",
                    entity_id=athlete.id,
                    metadata={
                        "verification_type": decision.verification_type.value,
                        "status": decision.status.value,
                        "notes": decision.notes,
                        "verification_request_id": str(request_id) if request_id else None,
                    },
                )

            logger.info(
                "Verification decision applied",
                status=decision.status.value,
                closed_request=bool(request_id),
            )
            return claim
