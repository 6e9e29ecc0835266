"""Webhook pipeline: verify -> decode -> forward.

Single pass, terminal on the first failure:

    parse header -> validate freshness -> verify MAC -> decode events -> forward

Every failure is raised as a ``WebhookError`` subclass whose ``stage``
says where the pipeline stopped.  The body is never parsed before the
signature over it has been checked.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import SecretStr

from tailforward.core.decoder import decode_events
from tailforward.core.exceptions import WebhookError
from tailforward.core.freshness import check_freshness
from tailforward.core.header import parse_signature_header
from tailforward.core.security import build_signing_string, verify_signature
from tailforward.core.telegram_client import TelegramClient
from tailforward.models.event import Event

logger = logging.getLogger(__name__)


def verify_webhook(
    header: str,
    body: bytes,
    now: datetime,
    webhook_secret: SecretStr,
) -> list[Event]:
    """Authenticate a webhook and decode its events.

    Pure local computation; safe to call outside the event loop.

    Args:
        header: Raw ``Tailscale-Webhook-Signature`` value.
        body: Raw request body bytes, exactly as received.
        now: Current UTC time.
        webhook_secret: Shared webhook secret.

    Returns:
        The decoded events in arrival order.

    Raises:
        SignatureHeaderError, TimestampOutOfWindowError,
        SignatureVerificationError, MalformedPayloadError.
    """
    signature_header = parse_signature_header(header)
    check_freshness(signature_header.timestamp, now)

    signing_string = build_signing_string(signature_header.raw_timestamp, body)
    verify_signature(webhook_secret, signing_string, signature_header.signature.value)

    return decode_events(body)


async def process_webhook(
    header: str,
    body: bytes,
    *,
    now: datetime,
    webhook_secret: SecretStr,
    telegram: TelegramClient,
) -> int:
    """Run the full pipeline for one inbound webhook request.

    Returns:
        The number of events forwarded.

    Raises:
        WebhookError: A subclass identifying the failed stage.  A
            ``ForwardingError`` may follow partial delivery.
    """
    try:
        events = verify_webhook(header, body, now, webhook_secret)
        logger.info("Webhook verified", extra={"event_count": len(events)})
        forwarded = await telegram.forward_events(events)
    except WebhookError as exc:
        logger.warning(
            "Webhook pipeline failed",
            extra={"stage": exc.stage.value, "error": type(exc).__name__},
        )
        # May echo header fields, including the claimed signature.
        logger.debug("Webhook failure detail: %s", exc)
        raise

    logger.info("Webhook forwarded", extra={"forwarded": forwarded})
    return forwarded
