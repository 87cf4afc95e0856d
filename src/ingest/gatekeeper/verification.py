"""Webhook verification protocol and result types.

A verifier answers one of three things about a delivery:

- VERIFIED: the signature matches the configured secret
- REJECTED: the signature is missing or wrong
- SKIPPED_UNCONFIGURED: no secret is configured, so nothing was checked

Skipped is deliberately not a success value. Development setups without a secret
still process events, but every such event is logged and recorded as unverified.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from src.utils.errors import SignatureError


class VerificationOutcome(str, Enum):
    VERIFIED = "verified"
    REJECTED = "rejected"
    SKIPPED_UNCONFIGURED = "skipped_unconfigured"


@dataclass
class VerificationResult:
    """Result of webhook verification."""

    outcome: VerificationOutcome
    error: str | None = None

    @property
    def accepted(self) -> bool:
        """Whether the event may proceed to recording and dispatch."""
        return self.outcome != VerificationOutcome.REJECTED


class WebhookVerifier(Protocol):
    """Protocol for webhook verification handlers."""

    def verify(self, headers: dict[str, str], body: bytes) -> VerificationResult:
        """Verify a webhook delivery.

        Args:
            headers: HTTP headers from the webhook request (lower-cased keys)
            body: Raw request body as bytes

        Returns:
            VerificationResult describing the outcome
        """
        ...


# Raises SignatureError on mismatch
VerifyFunc = Callable[[dict[str, str], bytes, str], None]


class BaseSigningSecretVerifier:
    """Base class for verifiers that check a shared signing secret.

    Subclasses define:
    - source_type: source name used in log and error messages
    - get_secret: returns the configured secret or None
    - verify_func: performs the check and raises SignatureError on failure
    """

    source_type: str
    get_secret: Callable[[], str | None]
    verify_func: VerifyFunc

    def verify(self, headers: dict[str, str], body: bytes) -> VerificationResult:
        signing_secret = self.get_secret()
        if not signing_secret:
            return VerificationResult(
                outcome=VerificationOutcome.SKIPPED_UNCONFIGURED,
                error=f"No signing secret configured for {self.source_type}",
            )

        try:
            self.verify_func(headers, body, signing_secret)
            return VerificationResult(outcome=VerificationOutcome.VERIFIED)
        except SignatureError as e:
            return VerificationResult(outcome=VerificationOutcome.REJECTED, error=str(e))
