"""Telegram Bot API client for Tailforward.

Relays verified Tailscale events to one configured chat:
- One ``sendMessage`` call per event, sequential and in arrival order
- A single attempt per message, no retry
- The first failure aborts the rest of the batch

The bot token is part of the request URL, so every error that leaves
this module is scrubbed of it first, and so are httpx's own log records.

All methods use a shared ``httpx.AsyncClient`` owned by the application.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import timezone

import httpx
from pydantic import SecretStr

from tailforward.core.exceptions import ForwardingError
from tailforward.models.event import Event, OutboundMessage

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
REDACTED = "<redacted>"


class TokenRedactingFilter(logging.Filter):
    """Scrub registered bot tokens from log records.

    httpx logs every request URL at INFO, and Telegram puts the token in
    the URL path.  Installed on the ``httpx`` and ``httpcore`` loggers.
    """

    def __init__(self) -> None:
        super().__init__()
        self.tokens: set[str] = set()

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.tokens:
            return True
        message = record.getMessage()
        redacted = message
        for token in self.tokens:
            redacted = redacted.replace(token, REDACTED)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


_token_filter = TokenRedactingFilter()
for _name in ("httpx", "httpcore"):
    logging.getLogger(_name).addFilter(_token_filter)


def render_event(event: Event) -> str:
    """Render an event as message text, one ``name: value`` line per field."""
    timestamp = event.timestamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    data = json.dumps(event.data, sort_keys=True, separators=(",", ":"))
    return "\n".join(
        (
            f"timestamp: {timestamp}",
            f"version: {event.version}",
            f"type: {event.type}",
            f"tailnet: {event.tailnet}",
            f"message: {event.message}",
            f"data: {data}",
        )
    )


class TelegramClient:
    """Async Telegram client bound to one bot token and one chat."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        bot_token: SecretStr,
        chat_id: int,
        api_base: str = TELEGRAM_API_BASE,
    ) -> None:
        self.http_client = http_client
        self.chat_id = chat_id
        self._bot_token = bot_token
        self._api_base = api_base.rstrip("/")
        if bot_token.get_secret_value():
            _token_filter.tokens.add(bot_token.get_secret_value())

    def __repr__(self) -> str:
        return f"<TelegramClient chat_id={self.chat_id}>"

    # ------------------------------------------------------------------
    #  Helpers
    # ------------------------------------------------------------------

    @property
    def _send_message_url(self) -> str:
        return f"{self._api_base}/bot{self._bot_token.get_secret_value()}/sendMessage"

    def _redact(self, text: str) -> str:
        """Remove the bot token from ``text``."""
        token = self._bot_token.get_secret_value()
        return text.replace(token, REDACTED) if token else text

    def build_message(self, event: Event) -> OutboundMessage:
        return OutboundMessage(chat_id=self.chat_id, text=render_event(event))

    # ------------------------------------------------------------------
    #  Public API methods
    # ------------------------------------------------------------------

    async def send_message(self, message: OutboundMessage) -> None:
        """POST one message to ``sendMessage``.

        Raises:
            ForwardingError: On a transport error or a non-2xx response.
        """
        try:
            response = await self.http_client.post(
                self._send_message_url,
                json=message.model_dump(),
            )
        except httpx.HTTPError as exc:
            raise ForwardingError(
                f"Telegram request failed: {self._redact(str(exc)) or type(exc).__name__}"
            ) from None

        if not response.is_success:
            raise ForwardingError(
                f"Telegram rejected message: HTTP {response.status_code} "
                f"{self._redact(response.text[:200])}",
                status_code=response.status_code,
            )

    async def forward_events(self, events: Sequence[Event]) -> int:
        """Send one message per event, in order.

        Returns:
            The number of messages sent.

        Raises:
            ForwardingError: On the first failed send.  Messages already
                sent are not retracted; ``sent`` on the error says how many.
        """
        messages = [self.build_message(event) for event in events]
        logger.info("Mapped events to messages", extra={"message_count": len(messages)})

        sent = 0
        for event, message in zip(events, messages):
            try:
                await self.send_message(message)
            except ForwardingError as exc:
                exc.sent = sent
                logger.error(
                    "Failed to forward event to Telegram",
                    extra={
                        "event_type": event.type,
                        "sent": sent,
                        "remaining": len(messages) - sent,
                        "error": str(exc),
                    },
                )
                raise
            sent += 1
            logger.info("Sent message", extra={"event_type": event.type, "chat_id": self.chat_id})

        return sent
