from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class VerificationType(str, Enum):
    """Claim types an athlete can have verified."""

    ENROLLMENT = "enrollment"
    SPORT = "sport"
    GRADES = "grades"
    IDENTITY = "identity"


class VerificationStatus(str, Enum):
    """Decisions a reviewer can make on a claim."""

    APPROVED = "approved"
    REJECTED = "rejected"


class VerificationDecisionRequest(BaseModel):
    """Body of POST /verify-athlete."""

    athlete_id: UUID
    verification_type: VerificationType
    status: VerificationStatus
    notes: str | None = None
    rejection_reason: str | None = None


class VerificationDecisionResponse(BaseModel):
    success: bool = True
    message: str


class ReviewerPermission(BaseModel):
    """An athletic director's capability flags, scoped to their school."""

    id: UUID
    profile_id: UUID
    school_id: UUID | None = None
    can_verify_enrollment: bool = Field(default=False)
    can_verify_sport: bool = Field(default=False)
    can_verify_grades: bool = Field(default=False)

    def can_verify(self, verification_type: VerificationType) -> bool:
        # Identity claims need an admin and never pass through a director
        if verification_type == VerificationType.IDENTITY:
            return False
        return {
            VerificationType.ENROLLMENT: self.can_verify_enrollment,
            VerificationType.SPORT: self.can_verify_sport,
            VerificationType.GRADES: self.can_verify_grades,
        }[verification_type]


class VerificationClaim(BaseModel):
    """Current state of one claim type on an athlete."""

    athlete_id: UUID
    verification_type: VerificationType
    verified: bool
    verified_at: datetime | None = None
