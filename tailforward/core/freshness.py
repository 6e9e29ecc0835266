"""Timestamp freshness check for signed webhooks.

A webhook is accepted only if it was signed at most five minutes ago and
not in the future.  There is no nonce store: this window is the only
replay protection.
"""

from __future__ import annotations

import logging
from datetime import datetime

from tailforward.core.exceptions import TimestampOutOfWindowError

logger = logging.getLogger(__name__)

TIMESTAMP_TOLERANCE_SECONDS: int = 300


def check_freshness(
    timestamp: datetime,
    now: datetime,
    tolerance: int = TIMESTAMP_TOLERANCE_SECONDS,
) -> int:
    """Validate that ``0 <= now - timestamp <= tolerance`` in whole seconds.

    Both bounds are inclusive.  Sub-second differences are truncated
    toward zero.

    Returns:
        The difference in seconds.

    Raises:
        TimestampOutOfWindowError: Too old, or signed in the future.
    """
    delta = int((now - timestamp).total_seconds())
    if delta < 0 or delta > tolerance:
        raise TimestampOutOfWindowError(delta)

    logger.info("Calculated time difference", extra={"time_diff": delta})
    return delta
