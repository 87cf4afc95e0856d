"""Pydantic models for StatTaq webhook and OAuth payloads."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StatTaqEventType(str, Enum):
    """Webhook event types the gatekeeper acts on."""

    SOCIAL_UPDATED = "social.updated"
    STATS_UPDATED = "stats.updated"
    NIL_CHANGED = "nil.changed"
    ACCOUNT_DISCONNECTED = "account.disconnected"

    @property
    def namespace(self) -> str:
        """Segment before the first '.', e.g. 'stats' for 'stats.updated'."""
        return self.value.split(".", 1)[0]

    @classmethod
    def parse(cls, event_type: str) -> "StatTaqEventType | None":
        try:
            return cls(event_type)
        except ValueError:
            return None


SYNC_EVENT_TYPES = frozenset(
    {
        StatTaqEventType.SOCIAL_UPDATED,
        StatTaqEventType.STATS_UPDATED,
        StatTaqEventType.NIL_CHANGED,
    }
)


class StatTaqWebhookData(BaseModel):
    stattaq_user_id: str = Field(min_length=1)
    stattaq_athlete_id: str | None = None
    changes: dict[str, Any] | None = None


class StatTaqWebhookPayload(BaseModel):
    """Body of a StatTaq webhook delivery."""

    id: str = Field(min_length=1)
    event_type: str = Field(min_length=1)
    created_at: str | None = None
    data: StatTaqWebhookData

    model_config = {"extra": "allow"}


class StatTaqTokenResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int
    token_type: str = "Bearer"


class StatTaqUser(BaseModel):
    id: str
    athlete_id: str | None = None
    name: str | None = None
    email: str | None = None
