# Models
from connectors.stattaq.stattaq_models import (
    SYNC_EVENT_TYPES,
    StatTaqEventType,
    StatTaqTokenResponse,
    StatTaqUser,
    StatTaqWebhookData,
    StatTaqWebhookPayload,
)

# OAuth
from connectors.stattaq.stattaq_oauth import (
    STATTAQ_SCOPES,
    StatTaqOAuthClient,
    StatTaqOAuthError,
    build_authorize_url,
)

# Webhook Handlers
from connectors.stattaq.stattaq_webhook_handler import (
    StatTaqWebhookVerifier,
    extract_stattaq_webhook_metadata,
    sign_stattaq_payload,
    verify_stattaq_webhook,
)

__all__ = [
    # Models
    "SYNC_EVENT_TYPES",
    "StatTaqEventType",
    "StatTaqTokenResponse",
    "StatTaqUser",
    "StatTaqWebhookData",
    "StatTaqWebhookPayload",
    # OAuth
    "STATTAQ_SCOPES",
    "StatTaqOAuthClient",
    "StatTaqOAuthError",
    "build_authorize_url",
    # Webhook Handlers
    "StatTaqWebhookVerifier",
    "extract_stattaq_webhook_metadata",
    "sign_stattaq_payload",
    "verify_stattaq_webhook",
]
