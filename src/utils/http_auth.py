"""httpx auth flows for outbound calls."""

import httpx

from src.utils.config import get_supabase_service_role_key


class BearerAuth(httpx.Auth):
    """Sends `Authorization: Bearer <token>`, e.g. a StatTaq access token for /me."""

    def __init__(self, token: str):
        self.token = token

    def auth_flow(self, request: httpx.Request):
        request.headers["Authorization"] = f"Bearer {self.token}"
        yield request


class SupabaseServiceAuth(BearerAuth):
    """Service-role credentials for calls to our own Supabase edge functions.

    The functions only accept internal calls that carry both the service role key
    and the `X-Internal-Call` marker.
    """

    def __init__(self, service_role_key: str | None = None):
        super().__init__(service_role_key or get_supabase_service_role_key() or "")

    def auth_flow(self, request: httpx.Request):
        request.headers["X-Internal-Call"] = "true"
        yield from super().auth_flow(request)
