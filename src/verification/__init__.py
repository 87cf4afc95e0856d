"""Athletic-director verification of athlete claims."""

from .models import (
    ReviewerPermission,
    VerificationClaim,
    VerificationDecisionRequest,
    VerificationStatus,
    VerificationType,
)

__all__ = [
    "ReviewerPermission",
    "VerificationClaim",
    "VerificationDecisionRequest",
    "VerificationStatus",
    "VerificationType",
]
