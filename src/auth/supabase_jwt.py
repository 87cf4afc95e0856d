"""Caller identity from Supabase access tokens.

Supabase signs user access tokens with the project JWT secret (HS256) and the
`authenticated` audience. The `sub` claim is the caller's profile id.
"""

import hmac
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import jwt
from fastapi import Request
from jwt import InvalidTokenError

from src.utils.config import get_supabase_jwt_secret, get_supabase_service_role_key
from src.utils.errors import AuthenticationError
from src.utils.logging import get_logger

logger = get_logger(__name__)

SUPABASE_AUDIENCE = "authenticated"


@dataclass
class AuthenticatedUser:
    profile_id: UUID
    email: str | None = None
    role: str | None = None


def _extract_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("authorization")
    if not auth_header:
        raise AuthenticationError("Missing authorization header")
    if not auth_header.startswith("Bearer "):
        raise AuthenticationError("Authorization header must use the Bearer scheme")
    return auth_header[7:]  # Remove "Bearer " prefix


def verify_supabase_jwt(token: str) -> dict[str, Any]:
    """Verify a Supabase access token and return its claims.

    Raises:
        AuthenticationError: If verification is not configured or the token is invalid
    """
    secret = get_supabase_jwt_secret()
    if not secret:
        logger.error("Supabase JWT verification not configured")
        raise AuthenticationError("Unauthorized")

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=SUPABASE_AUDIENCE,
            options={"require": ["sub", "exp"]},
        )
    except InvalidTokenError as exc:
        logger.debug("Supabase JWT verification failed", error=str(exc))
        raise AuthenticationError("Unauthorized") from exc


async def get_current_user(request: Request) -> AuthenticatedUser:
    """FastAPI dependency resolving the caller from the Authorization header."""
    claims = verify_supabase_jwt(_extract_bearer_token(request))
    try:
        profile_id = UUID(claims["sub"])
    except (AttributeError, ValueError) as exc:
        raise AuthenticationError("Unauthorized") from exc

    return AuthenticatedUser(profile_id=profile_id, email=claims.get("email"), role=claims.get("role"))


async def require_service_role(request: Request) -> None:
    """FastAPI dependency admitting only calls made with the service role key."""
    service_role_key = get_supabase_service_role_key()
    token = _extract_bearer_token(request)
    if not service_role_key or not hmac.compare_digest(token, service_role_key):
        raise AuthenticationError("Service role credentials required")
