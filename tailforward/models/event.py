"""Tailscale event and Telegram message models.

Events are validated in strict mode: a JSON number is never accepted
where a string is expected (or the reverse).  Unknown fields are ignored
so that new Tailscale event attributes do not break decoding.
"""

from __future__ import annotations

from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class Event(BaseModel):
    """A single Tailscale webhook event."""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    timestamp: AwareDatetime
    version: int = Field(ge=0, le=255)
    type: str  # e.g. "nodeCreated", "test"
    tailnet: str
    message: str
    data: Any | None = None  # event-specific structured payload

    def __repr__(self) -> str:
        return (
            f"<Event type={self.type!r} tailnet={self.tailnet!r} "
            f"timestamp={self.timestamp.isoformat()}>"
        )


class OutboundMessage(BaseModel):
    """Body of a Telegram ``sendMessage`` call."""

    model_config = ConfigDict(frozen=True)

    chat_id: int
    text: str
