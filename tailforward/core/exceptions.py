"""Domain-specific exceptions for Tailforward.

Every failure point in the webhook pipeline raises one of these
exceptions so that the HTTP layer can map failures precisely.  Each
class records the pipeline ``stage`` that raised it and the HTTP
``status_code`` the caller should see.  Never raise bare Exception or
build errors from free-form strings.
"""

from __future__ import annotations

from enum import StrEnum


class PipelineStage(StrEnum):
    """Stages of the verify -> decode -> forward flow."""

    PARSE_HEADER = "parse_header"
    VALIDATE_FRESHNESS = "validate_freshness"
    VERIFY_MAC = "verify_mac"
    DECODE_EVENTS = "decode_events"
    FORWARD = "forward"


class WebhookError(Exception):
    """Base exception for every webhook pipeline failure."""

    stage: PipelineStage
    status_code: int = 500
    detail: str = "Webhook processing failed"


# =============================================================================
# Signature header
# =============================================================================


class SignatureHeaderError(WebhookError):
    """The ``Tailscale-Webhook-Signature`` header is structurally wrong."""

    stage = PipelineStage.PARSE_HEADER
    status_code = 422
    detail = "Invalid Tailscale-Webhook-Signature header"


class InvalidHeaderError(SignatureHeaderError):
    """A header field is missing, malformed, or has the wrong name."""

    def __init__(self, expected: str, got: str) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"invalid signature header (expected: {expected}, got: {got!r})")


class InvalidTimestampError(SignatureHeaderError):
    """The ``t=`` value is not a base-10 integer or is out of range."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"invalid unix timestamp: {value!r}")


class UnsupportedVersionError(SignatureHeaderError):
    """The signature uses a scheme version other than ``v1``."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(f"unsupported signature version: {version!r}")


# =============================================================================
# Freshness
# =============================================================================


class TimestampOutOfWindowError(WebhookError):
    """The signed timestamp is too old or lies in the future."""

    stage = PipelineStage.VALIDATE_FRESHNESS
    status_code = 422
    detail = "Webhook timestamp outside the accepted window"

    def __init__(self, delta: int) -> None:
        self.delta = delta
        super().__init__(f"the difference in timestamp is out of window ({delta}s)")


# =============================================================================
# MAC verification
# =============================================================================


class SignatureVerificationError(WebhookError):
    """The supplied signature does not authenticate the request."""

    stage = PipelineStage.VERIFY_MAC
    status_code = 422
    detail = "Invalid webhook signature"


class MalformedSignatureError(SignatureVerificationError):
    """The ``v1=`` value is not valid hex."""


class SignatureMismatchError(SignatureVerificationError):
    """HMAC-SHA256 of the signing string differs from the supplied signature."""


# =============================================================================
# Payload
# =============================================================================


class MalformedPayloadError(WebhookError):
    """An authenticated body could not be decoded into an event batch."""

    stage = PipelineStage.DECODE_EVENTS
    status_code = 400
    detail = "Malformed webhook payload"


# =============================================================================
# Telegram
# =============================================================================


class ForwardingError(WebhookError):
    """Posting a message to the Telegram Bot API failed.

    Messages already sent for earlier events in the batch are not undone.
    """

    stage = PipelineStage.FORWARD
    detail = "Failed to forward webhook events"

    def __init__(self, message: str, status_code: int | None = None, sent: int = 0) -> None:
        self.upstream_status = status_code
        self.status_code = status_code if status_code is not None and status_code >= 400 else 500
        self.sent = sent
        super().__init__(message)


# =============================================================================
# Startup
# =============================================================================


class ConfigurationError(Exception):
    """A required secret could not be loaded at startup."""
