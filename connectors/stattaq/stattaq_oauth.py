"""StatTaq OAuth client: authorize URL, code exchange and user lookup."""

from urllib.parse import urlencode

import httpx

from connectors.stattaq.stattaq_models import StatTaqTokenResponse, StatTaqUser
from src.utils.config import (
    get_stattaq_api_url,
    get_stattaq_auth_url,
    get_stattaq_callback_url,
    get_stattaq_client_id,
    get_stattaq_client_secret,
    get_stattaq_token_url,
)
from src.utils.http_auth import BearerAuth
from src.utils.logging import get_logger

logger = get_logger(__name__)

STATTAQ_SCOPES = ("profile.read", "social.read", "stats.read", "nil.read")


class StatTaqOAuthError(Exception):
    """StatTaq rejected a token exchange or user lookup."""


def build_authorize_url(state: str, athlete_id: str) -> str:
    """Build the StatTaq authorization URL for an athlete.

    The athlete id rides along so the callback knows which athlete to link.
    """
    params = {
        "client_id": get_stattaq_client_id(),
        "redirect_uri": get_stattaq_callback_url(),
        "response_type": "code",
        "scope": " ".join(STATTAQ_SCOPES),
        "state": state,
        "athlete_id": athlete_id,
    }
    return f"{get_stattaq_auth_url()}?{urlencode(params)}"


class StatTaqOAuthClient:
    """Thin async client over the StatTaq OAuth and user endpoints."""

    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout_seconds = timeout_seconds

    async def exchange_code(self, code: str) -> StatTaqTokenResponse:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.post(
                get_stattaq_token_url(),
                data={
                    "grant_type": "authorization_code",
                    "client_id": get_stattaq_client_id(),
                    "client_secret": get_stattaq_client_secret(),
                    "code": code,
                    "redirect_uri": get_stattaq_callback_url(),
                },
            )

        if response.status_code != 200:
            logger.warning("StatTaq token exchange failed", status_code=response.status_code)
            raise StatTaqOAuthError(f"Token exchange failed: {response.text}")

        try:
            return StatTaqTokenResponse.model_validate(response.json())
        except ValueError as e:
            # Covers both undecodable JSON and pydantic validation errors
            logger.warning("StatTaq token response malformed", error=str(e))
            raise StatTaqOAuthError("Token exchange returned an invalid response") from e

    async def get_current_user(self, access_token: str) -> StatTaqUser:
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds, auth=BearerAuth(access_token)
        ) as client:
            response = await client.get(f"{get_stattaq_api_url()}/me")

        if response.status_code != 200:
            logger.warning("StatTaq user lookup failed", status_code=response.status_code)
            raise StatTaqOAuthError("Failed to fetch StatTaq user info")

        try:
            return StatTaqUser.model_validate(response.json())
        except ValueError as e:
            logger.warning("StatTaq user response malformed", error=str(e))
            raise StatTaqOAuthError("StatTaq user info was invalid") from e
