"""Decode an authenticated webhook body into an ordered event batch.

Only call this after ``verify_signature`` has succeeded.
"""

from __future__ import annotations

import logging

from pydantic import TypeAdapter, ValidationError

from tailforward.core.exceptions import MalformedPayloadError
from tailforward.models.event import Event

logger = logging.getLogger(__name__)

_EVENT_BATCH = TypeAdapter(list[Event])


def decode_events(body: bytes) -> list[Event]:
    """Parse a JSON array of events, preserving arrival order.

    Raises:
        MalformedPayloadError: Invalid JSON, not an array, a missing
            required field, or a field of the wrong type.
    """
    try:
        events = _EVENT_BATCH.validate_json(body)
    except ValidationError as exc:
        logger.warning(
            "Webhook payload rejected",
            extra={"error_count": exc.error_count()},
        )
        raise MalformedPayloadError(
            f"webhook body is not a valid event batch ({exc.error_count()} errors)"
        ) from exc

    logger.debug("Decoded webhook events", extra={"event_count": len(events)})
    return events
