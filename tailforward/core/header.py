"""Parser for the ``Tailscale-Webhook-Signature`` header.

Tailscale sends:  Tailscale-Webhook-Signature: t=<unix-seconds>,v1=<hex_hmac>

The header is the only part of the request that is read before the
signature is checked, so this module is a pure function over one string:
``parse_signature_header(str) -> SignatureHeader``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum

from tailforward.core.exceptions import (
    InvalidHeaderError,
    InvalidTimestampError,
    UnsupportedVersionError,
)

logger = logging.getLogger(__name__)

HEADER_NAME = "Tailscale-Webhook-Signature"
HEADER_FORMAT = "t=<timestamp>,v1=<signature>"

_TIMESTAMP_RE = re.compile(r"-?[0-9]+")
_VERSION_RE = re.compile(r"v[0-9]+")


# =============================================================================
#  Data classes
# =============================================================================


class SignatureVersion(StrEnum):
    """Signature scheme versions this service accepts."""

    V1 = "v1"


@dataclass(frozen=True, slots=True)
class Signature:
    """The versioned signature value, still hex-encoded."""

    version: SignatureVersion
    value: str


@dataclass(frozen=True, slots=True)
class SignatureHeader:
    """A parsed signature header: when it was signed, and the signature."""

    timestamp: datetime
    signature: Signature
    raw_timestamp: str  # `t` exactly as sent; the MAC covers this text

    @property
    def unix_timestamp(self) -> int:
        return int(self.timestamp.timestamp())

    def __str__(self) -> str:
        return f"t={self.raw_timestamp},{self.signature.version}={self.signature.value}"


# =============================================================================
#  Parser
# =============================================================================


def parse_signature_header(header: str) -> SignatureHeader:
    """Parse a raw ``Tailscale-Webhook-Signature`` value.

    Args:
        header: The header value, e.g. ``t=1684518293,v1=8b1f...``.

    Returns:
        An immutable ``SignatureHeader``.

    Raises:
        InvalidHeaderError: Not exactly two fields, a field without ``=``,
            or a field with the wrong name.
        InvalidTimestampError: ``t`` is not a base-10 integer or cannot be
            represented as a UTC datetime.
        UnsupportedVersionError: The signature is tagged ``v2``, ``v3``, ...
    """
    fields = header.split(",")
    if len(fields) != 2:
        raise InvalidHeaderError(expected=HEADER_FORMAT, got=header)

    t_field, v_field = fields
    t_value = _get_header_field(t_field, "t", "t=<timestamp>")

    version, value = _split_field(v_field, "v1=<signature>")
    if version != SignatureVersion.V1:
        if _VERSION_RE.fullmatch(version):
            raise UnsupportedVersionError(version)
        raise InvalidHeaderError(expected=SignatureVersion.V1.value, got=version)

    return SignatureHeader(
        timestamp=_parse_timestamp(t_value),
        signature=Signature(version=SignatureVersion.V1, value=value),
        raw_timestamp=t_value,
    )


def _split_field(field: str, expected: str) -> tuple[str, str]:
    """Split ``name=value`` on the first ``=``."""
    name, sep, value = field.partition("=")
    if not sep:
        raise InvalidHeaderError(expected=expected, got=field)
    return name, value


def _get_header_field(field: str, name: str, expected: str) -> str:
    """Return the value of ``field`` if its name is ``name``."""
    found, value = _split_field(field, expected)
    if found != name:
        raise InvalidHeaderError(expected=name, got=found)
    return value


def _parse_timestamp(value: str) -> datetime:
    """Convert unix seconds to an aware UTC datetime.

    Python's ``int()`` also accepts whitespace, underscores, a leading ``+``
    and non-ASCII digits; the header must be plain decimal.
    """
    if not _TIMESTAMP_RE.fullmatch(value):
        raise InvalidTimestampError(value)
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidTimestampError(value) from exc
