"""Tailscale webhook receiver.

POST / receives signed Tailscale webhook batches.
Strict ordering:
  1. Read raw body (before JSON parsing, no unescaping)
  2. Parse header, check freshness, verify HMAC-SHA256
  3. Decode events
  4. Forward each event to Telegram, in order
  5. Return 200 with the number of events forwarded

Status mapping: header/timestamp/signature failures → 422, undecodable
payload → 400, Telegram failures → Telegram's status (or 500).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from tailforward.config import Secrets
from tailforward.core.exceptions import WebhookError
from tailforward.core.pipeline import process_webhook
from tailforward.core.telegram_client import TelegramClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


# ---------------------------------------------------------------------------
#  Dependencies, populated by the application lifespan
# ---------------------------------------------------------------------------


def get_secrets(request: Request) -> Secrets:
    return request.app.state.secrets


def get_telegram_client(request: Request) -> TelegramClient:
    return request.app.state.telegram


def get_now() -> datetime:
    return datetime.now(timezone.utc)


@router.post("/", status_code=200)
async def receive_tailscale_webhook(
    request: Request,
    tailscale_webhook_signature: str | None = Header(default=None),
    secrets: Secrets = Depends(get_secrets),
    telegram: TelegramClient = Depends(get_telegram_client),
    now: datetime = Depends(get_now),
) -> dict[str, str | int]:
    """Verify a Tailscale webhook and relay its events to Telegram.

    Returns:
        ``{"status": "ok", "forwarded": <n>}`` on success.

    Raises:
        HTTPException: With the status code of the failed pipeline stage.
    """
    # Raw bytes: the MAC covers the body exactly as sent.
    body = await request.body()

    if tailscale_webhook_signature is None:
        logger.warning("Webhook rejected: missing Tailscale-Webhook-Signature header")

    try:
        forwarded = await process_webhook(
            tailscale_webhook_signature or "",
            body,
            now=now,
            webhook_secret=secrets.webhook_secret,
            telegram=telegram,
        )
    except WebhookError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    return {"status": "ok", "forwarded": forwarded}
