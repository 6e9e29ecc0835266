"""HMAC-SHA256 webhook signature verification.

Every incoming webhook is cryptographically verified BEFORE its body is
parsed.  Tailscale signs ``"{unix_timestamp}.{raw_body}"`` with the
shared webhook secret and sends the hex digest as ``v1=``.

The body must be the exact bytes received on the wire.  Nothing here
strips or unescapes it.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import logging

from pydantic import SecretStr

from tailforward.core.exceptions import MalformedSignatureError, SignatureMismatchError

logger = logging.getLogger(__name__)


def build_signing_string(timestamp: str | int, body: bytes) -> bytes:
    """Return the canonical bytes the webhook MAC is computed over.

    ``timestamp`` should be the ``t=`` text as received, not a re-rendered
    integer, so that a sender's leading zeros are signed as sent.
    """
    return str(timestamp).encode("ascii") + b"." + body


def compute_signature(secret: SecretStr, signing_string: bytes) -> bytes:
    """Compute the raw HMAC-SHA256 digest of ``signing_string``."""
    return hmac.new(
        key=secret.get_secret_value().encode("utf-8"),
        msg=signing_string,
        digestmod=hashlib.sha256,
    ).digest()


def verify_signature(
    secret: SecretStr,
    signing_string: bytes,
    claimed_signature: str,
) -> None:
    """Verify a hex-encoded HMAC-SHA256 signature.

    Args:
        secret: The shared webhook secret.
        signing_string: Output of ``build_signing_string``.
        claimed_signature: The ``v1=`` value from the signature header.

    Raises:
        MalformedSignatureError: If ``claimed_signature`` is not valid hex.
        SignatureMismatchError: If the signature does not match.
    """
    try:
        claimed = binascii.unhexlify(claimed_signature)
    except (binascii.Error, ValueError) as exc:
        raise MalformedSignatureError("signature is not valid hex") from exc

    expected = compute_signature(secret, signing_string)

    # Constant-time over the raw digests, not the hex strings.
    if not hmac.compare_digest(expected, claimed):
        raise SignatureMismatchError("webhook has an invalid signature")
