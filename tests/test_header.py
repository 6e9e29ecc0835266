"""Tests for the Tailscale-Webhook-Signature header parser.

Covers:
- Well-formed headers parse and re-serialize to the same fields
- Structural rejects (empty, missing/extra comma, missing '=', wrong names)
- Unsupported signature versions
- Non-decimal and out-of-range timestamps
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tailforward.core.exceptions import (
    InvalidHeaderError,
    InvalidTimestampError,
    SignatureHeaderError,
    UnsupportedVersionError,
)
from tailforward.core.header import (
    SignatureHeader,
    SignatureVersion,
    parse_signature_header,
)

SIGNATURE_HEX = "5f0c2c0e1c0b2f9a3d6e8b7a1c4d2e3f5a6b7c8d9e0f1a2b3c4d5e6f7a8b9c0d"


# =============================================================================
#  Well-formed headers
# =============================================================================


class TestValidHeader:
    """Headers of the form t=<unix-seconds>,v1=<hex>."""

    def test_parses_timestamp_and_signature(self) -> None:
        header = parse_signature_header(f"t=1684518293,v1={SIGNATURE_HEX}")

        assert isinstance(header, SignatureHeader)
        assert header.timestamp == datetime(2023, 5, 19, 17, 44, 53, tzinfo=timezone.utc)
        assert header.unix_timestamp == 1684518293
        assert header.signature.version is SignatureVersion.V1
        assert header.signature.value == SIGNATURE_HEX

    @pytest.mark.parametrize(
        "raw",
        [
            "t=0,v1=00",
            "t=1684518293,v1=abcdef",
            f"t=1684518293,v1={SIGNATURE_HEX}",
            "t=4102444800,v1=ff",
            "t=-1,v1=",
            "t=01684518293,v1=ab",
            "t=-0,v1=ab",
        ],
    )
    def test_round_trips(self, raw: str) -> None:
        assert str(parse_signature_header(raw)) == raw

    def test_keeps_timestamp_text_as_sent(self) -> None:
        header = parse_signature_header("t=01684518293,v1=ab")
        assert header.raw_timestamp == "01684518293"
        assert header.unix_timestamp == 1684518293

    def test_header_is_immutable(self) -> None:
        header = parse_signature_header("t=1684518293,v1=ab")
        with pytest.raises(AttributeError):
            header.timestamp = datetime.now(timezone.utc)  # type: ignore[misc]

    def test_signature_value_is_not_validated_here(self) -> None:
        """Hex decoding belongs to MAC verification, not header parsing."""
        header = parse_signature_header("t=1684518293,v1=not-hex")
        assert header.signature.value == "not-hex"

    def test_value_may_contain_equals(self) -> None:
        header = parse_signature_header("t=1684518293,v1=ab=cd")
        assert header.signature.value == "ab=cd"


# =============================================================================
#  Structural rejects
# =============================================================================


class TestInvalidHeader:
    """Every malformed header fails with a SignatureHeaderError subclass."""

    @pytest.mark.parametrize(
        "raw",
        [
            pytest.param("", id="empty"),
            pytest.param("t=1684518293v1=ab", id="no-comma"),
            pytest.param("t=1684518293,,v1=ab", id="extra-comma"),
            pytest.param("t=1684518293,v1=ab,", id="trailing-comma"),
            pytest.param("t1684518293,v1=ab", id="t-missing-equals"),
            pytest.param("t=1684518293,v1ab", id="v1-missing-equals"),
            pytest.param("a=1684518293,v1=ab", id="wrong-first-name"),
            pytest.param("t=1684518293,v=ab", id="wrong-second-name"),
            pytest.param("v1=ab,t=1684518293", id="swapped-fields"),
            pytest.param(" t=1684518293,v1=ab", id="leading-space"),
        ],
    )
    def test_rejects_invalid_structure(self, raw: str) -> None:
        with pytest.raises(InvalidHeaderError):
            parse_signature_header(raw)

    def test_wrong_name_reports_expected_and_got(self) -> None:
        with pytest.raises(InvalidHeaderError) as exc_info:
            parse_signature_header("a=1684518293,v1=ab")
        assert exc_info.value.expected == "t"
        assert exc_info.value.got == "a"

    @pytest.mark.parametrize("version", ["v2", "v0", "v10"])
    def test_rejects_unsupported_version(self, version: str) -> None:
        with pytest.raises(UnsupportedVersionError) as exc_info:
            parse_signature_header(f"t=1684518293,{version}=ab")
        assert exc_info.value.version == version

    @pytest.mark.parametrize(
        "timestamp",
        ["foo", "", "1684518293.5", "+1684518293", " 1684518293", "1_684_518_293", "١٢٣"],
    )
    def test_rejects_non_decimal_timestamp(self, timestamp: str) -> None:
        with pytest.raises(InvalidTimestampError):
            parse_signature_header(f"t={timestamp},v1=ab")

    def test_rejects_out_of_range_timestamp(self) -> None:
        with pytest.raises(InvalidTimestampError):
            parse_signature_header("t=99999999999999999999,v1=ab")

    def test_all_header_errors_are_client_faults(self) -> None:
        for raw in ("", "a=1,v1=ab", "t=1,v2=ab", "t=x,v1=ab"):
            with pytest.raises(SignatureHeaderError) as exc_info:
                parse_signature_header(raw)
            assert exc_info.value.status_code == 422
