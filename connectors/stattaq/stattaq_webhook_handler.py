"""
StatTaq webhook verification utilities.

StatTaq signs each delivery with HMAC-SHA256 over the raw body and sends the
base64-encoded digest in the X-StatTaq-Signature header.
"""

import base64
import hashlib
import hmac
import json

from src.ingest.gatekeeper.verification import BaseSigningSecretVerifier
from src.utils.config import get_stattaq_webhook_secret
from src.utils.errors import SignatureError

SIGNATURE_HEADER = "x-stattaq-signature"


class StatTaqWebhookVerifier(BaseSigningSecretVerifier):
    """Verifier for StatTaq webhooks using base64 HMAC-SHA256 signatures."""

    source_type = "stattaq"
    get_secret = staticmethod(get_stattaq_webhook_secret)
    verify_func = staticmethod(lambda h, b, s: verify_stattaq_webhook(h, b, s))


def sign_stattaq_payload(body: bytes, secret: str) -> str:
    """Compute the signature StatTaq would send for `body`."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_stattaq_webhook(headers: dict[str, str], body: bytes, secret: str) -> None:
    """Verify the X-StatTaq-Signature header against the body.

    Raises:
        SignatureError: If the signature is missing or does not match
    """
    signature = headers.get(SIGNATURE_HEADER, "")
    if not signature:
        raise SignatureError("Missing StatTaq webhook signature")

    expected = sign_stattaq_payload(body, secret)
    if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii")):
        raise SignatureError("Invalid StatTaq webhook signature")


def extract_stattaq_webhook_metadata(body_str: str) -> dict[str, str | int]:
    """Extract metadata from a StatTaq webhook for observability.

    Never raises; unparseable bodies yield a parse_error entry.
    """
    metadata: dict[str, str | int] = {"payload_size": len(body_str)}

    try:
        payload = json.loads(body_str)
    except (json.JSONDecodeError, ValueError):
        metadata["parse_error"] = "Failed to parse JSON"
        return metadata

    if not isinstance(payload, dict):
        metadata["parse_error"] = "Payload is not a JSON object"
        return metadata

    metadata["webhook_id"] = str(payload.get("id", ""))
    metadata["event_type"] = str(payload.get("event_type", "unknown"))
    data = payload.get("data")
    if isinstance(data, dict) and data.get("stattaq_user_id"):
        metadata["stattaq_user_id"] = str(data["stattaq_user_id"])

    return metadata
