"""StatTaq account connection endpoints."""

from urllib.parse import quote

import asyncpg
import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from connectors.stattaq.stattaq_oauth import StatTaqOAuthError
from src.auth.supabase_jwt import AuthenticatedUser, get_current_user
from src.clients.supabase import get_db_connection
from src.connections.models import ConnectResponse, DisconnectResponse
from src.connections.service import StatTaqConnectionService
from src.utils.config import get_frontend_url
from src.utils.errors import GradeUpError
from src.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/stattaq")

CONNECTIONS_PATH = "/settings/connections"


def get_connection_service(request: Request) -> StatTaqConnectionService:
    return request.app.state.connection_service


def _redirect_to_connections(**params: str) -> RedirectResponse:
    query = "&".join(f"{key}={quote(value)}" for key, value in params.items())
    return RedirectResponse(url=f"{get_frontend_url()}{CONNECTIONS_PATH}?{query}")


@router.post("/connect", response_model=ConnectResponse)
async def connect_stattaq(
    user: AuthenticatedUser = Depends(get_current_user),
    conn: asyncpg.Connection = Depends(get_db_connection),
    service: StatTaqConnectionService = Depends(get_connection_service),
) -> ConnectResponse:
    """Start the StatTaq OAuth flow for the calling athlete."""
    return await service.start_connect(conn, user.profile_id)


@router.get("/callback")
async def stattaq_callback(
    code: str | None = None,
    state: str | None = None,
    athlete_id: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    conn: asyncpg.Connection = Depends(get_db_connection),
    service: StatTaqConnectionService = Depends(get_connection_service),
) -> RedirectResponse:
    """OAuth redirect target. Always answers with a redirect back to the frontend."""
    if error:
        logger.warning("StatTaq authorization denied", error=error)
        return _redirect_to_connections(error=error_description or error)

    try:
        await service.complete_callback(conn, code, state, athlete_id)
    except (GradeUpError, StatTaqOAuthError, httpx.HTTPError) as e:
        logger.warning("StatTaq callback failed", error=str(e))
        return _redirect_to_connections(error=str(e))

    return _redirect_to_connections(success="stattaq_connected")


@router.post("/disconnect", response_model=DisconnectResponse)
async def disconnect_stattaq(
    user: AuthenticatedUser = Depends(get_current_user),
    conn: asyncpg.Connection = Depends(get_db_connection),
    service: StatTaqConnectionService = Depends(get_connection_service),
) -> DisconnectResponse:
    """Deactivate the calling athlete's StatTaq link."""
    await service.disconnect(conn, user.profile_id)
    return DisconnectResponse()
