"""Athletic-director verification endpoint."""

import asyncpg
from fastapi import APIRouter, Depends

from src.auth.supabase_jwt import AuthenticatedUser, get_current_user
from src.clients.supabase import get_db_connection

from .models import VerificationDecisionRequest, VerificationDecisionResponse
from .service import VerificationService

router = APIRouter()


@router.post("/verify-athlete", response_model=VerificationDecisionResponse)
async def verify_athlete(
    decision: VerificationDecisionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    conn: asyncpg.Connection = Depends(get_db_connection),
) -> VerificationDecisionResponse:
    """Approve or reject one of an athlete's claims."""
    await VerificationService.apply_decision(conn, user.profile_id, decision)
    return VerificationDecisionResponse(
        message=f"Athlete {decision.verification_type.value} verification {decision.status.value}"
    )
