"""Pydantic models for gatekeeper service."""

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the webhook sender.

    `received` is always true. `error` is set when the event was rejected or
    failed internally; the sender must not retry on it.
    """

    received: bool = True
    error: str | None = None


class ErrorResponse(BaseModel):
    error: str
