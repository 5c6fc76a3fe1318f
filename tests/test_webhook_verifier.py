"""Unit tests for webhook verification."""

import json
import time

import pytest

from acp import ACPClient
from acp.exceptions import ErrorKind, SignatureVerificationError, VerificationFailure
from acp.models import WebhookEvent
from acp.webhooks import (
    DEFAULT_TOLERANCE,
    SignatureHeader,
    Webhooks,
    compute_signature,
    construct_event,
    generate_test_header,
    parse_signature_header,
    verify_signature,
)

SECRET = "whsec_test"
NOW = 1700000000
PAYLOAD = (
    '{"id":"evt_1","type":"checkout_session.completed","data":{"id":"cs_1"},'
    '"created":1700000000,"livemode":false}'
)


def fixed_clock(value: float = NOW):
    return lambda: value


class TestParseSignatureHeader:
    """Tests for parse_signature_header."""

    def test_single_signature(self):
        header = parse_signature_header("t=1700000000,v1=abc")
        assert header == SignatureHeader(timestamp=1700000000, signatures=("abc",))

    def test_multiple_signatures_keep_order(self):
        """Every v1 value should be kept, in header order."""
        header = parse_signature_header("t=5,v1=aaa,v1=bbb,v1=ccc")
        assert header.signatures == ("aaa", "bbb", "ccc")

    def test_ignores_unknown_keys(self):
        header = parse_signature_header("t=5,v0=legacy,v1=abc,extra=1")
        assert header.signatures == ("abc",)

    def test_tolerates_whitespace(self):
        header = parse_signature_header("t=5, v1=abc")
        assert header.timestamp == 5
        assert header.signatures == ("abc",)

    def test_bytes_header(self):
        """Raw header bytes should parse like the decoded string."""
        header = parse_signature_header(b"t=5,v1=abc")
        assert header == SignatureHeader(timestamp=5, signatures=("abc",))

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            None,
            "v1=abc",
            "t=abc,v1=abc",
            "t=,v1=abc",
            "t=0,v1=abc",
            "t=-5,v1=abc",
            "t=5",
            "t=5,v1=",
            "t=5,t=6,v1=abc",
            "garbage",
            "t=+5,v1=abc",
            "t=1_700_000_000,v1=abc",
            "t=\u0661\u0662,v1=abc",
            "t= 5 ,v1=abc",
            "t=5.0,v1=abc",
            b"\xff\xfe",
            12345,
        ],
    )
    def test_malformed_headers(self, raw):
        """Malformed headers should raise with reason MALFORMED_HEADER."""
        with pytest.raises(SignatureVerificationError) as exc_info:
            parse_signature_header(raw)
        assert exc_info.value.reason is VerificationFailure.MALFORMED_HEADER


class TestConstructEvent:
    """Tests for construct_event."""

    def test_valid_event(self):
        """A correctly signed, fresh payload should decode to an envelope."""
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        event = construct_event(PAYLOAD, header, SECRET, now=fixed_clock())

        assert isinstance(event, WebhookEvent)
        assert event.id == "evt_1"
        assert event.type == "checkout_session.completed"
        assert event.data == {"id": "cs_1"}
        assert event.created == 1700000000
        assert event.livemode is False

    def test_header_format(self):
        """Generated header should be t=<ts>,v1=<digest>."""
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        assert header == f"t={NOW},v1={compute_signature(NOW, PAYLOAD, SECRET)}"

    def test_bytes_payload(self):
        """Raw bytes bodies should verify the same as str bodies."""
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        event = construct_event(PAYLOAD.encode(), header, SECRET, now=fixed_clock())
        assert event.id == "evt_1"

    def test_stale_event_with_default_tolerance(self):
        """An event 400s old should be rejected with the default 300s tolerance."""
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW - 400)
        with pytest.raises(SignatureVerificationError) as exc_info:
            construct_event(PAYLOAD, header, SECRET, now=fixed_clock())
        assert exc_info.value.reason is VerificationFailure.STALE_EVENT
        assert "400 seconds old" in exc_info.value.message

    def test_stale_event_accepted_with_larger_tolerance(self):
        """The same event should pass with a 500s tolerance."""
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW - 400)
        event = construct_event(PAYLOAD, header, SECRET, tolerance=500, now=fixed_clock())
        assert event.id == "evt_1"

    def test_event_exactly_at_tolerance_is_accepted(self):
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW - DEFAULT_TOLERANCE)
        assert construct_event(PAYLOAD, header, SECRET, now=fixed_clock()).id == "evt_1"

    def test_freshness_checked_before_signature(self):
        """An old event with a bad signature should be reported as stale."""
        header = f"t={NOW - 1000},v1=deadbeef"
        with pytest.raises(SignatureVerificationError) as exc_info:
            construct_event(PAYLOAD, header, SECRET, now=fixed_clock())
        assert exc_info.value.reason is VerificationFailure.STALE_EVENT

    def test_wrong_secret(self):
        header = generate_test_header(PAYLOAD, "whsec_other", timestamp=NOW)
        with pytest.raises(SignatureVerificationError) as exc_info:
            construct_event(PAYLOAD, header, SECRET, now=fixed_clock())
        assert exc_info.value.reason is VerificationFailure.SIGNATURE_MISMATCH

    def test_tampered_payload(self):
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        tampered = PAYLOAD.replace("cs_1", "cs_2")
        with pytest.raises(SignatureVerificationError) as exc_info:
            construct_event(tampered, header, SECRET, now=fixed_clock())
        assert exc_info.value.reason is VerificationFailure.SIGNATURE_MISMATCH

    def test_reserialized_payload_is_rejected(self):
        """Equivalent JSON with different bytes must not verify."""
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        reserialized = json.dumps(json.loads(PAYLOAD), indent=2)
        assert not verify_signature(reserialized, header, SECRET, now=fixed_clock())

    def test_timestamp_swap_is_rejected(self):
        """Re-stamping a captured signature with a new timestamp must fail."""
        old_sig = compute_signature(NOW - 1000, PAYLOAD, SECRET)
        header = f"t={NOW},v1={old_sig}"
        assert not verify_signature(PAYLOAD, header, SECRET, now=fixed_clock())

    def test_rotated_secret_any_signature_matches(self):
        """With several v1 values, a match on any one should be accepted."""
        good = compute_signature(NOW, PAYLOAD, SECRET)
        stale = compute_signature(NOW, PAYLOAD, "whsec_old")
        header = f"t={NOW},v1={stale},v1={good}"
        assert construct_event(PAYLOAD, header, SECRET, now=fixed_clock()).id == "evt_1"

    def test_invalid_json_payload(self):
        """A signed payload that is not JSON should fail decoding."""
        payload = "not json"
        header = generate_test_header(payload, SECRET, timestamp=NOW)
        with pytest.raises(SignatureVerificationError) as exc_info:
            construct_event(payload, header, SECRET, now=fixed_clock())
        assert exc_info.value.reason is VerificationFailure.PAYLOAD_DECODE_ERROR

    def test_payload_missing_envelope_fields(self):
        payload = '{"id":"evt_1"}'
        header = generate_test_header(payload, SECRET, timestamp=NOW)
        with pytest.raises(SignatureVerificationError) as exc_info:
            construct_event(payload, header, SECRET, now=fixed_clock())
        assert exc_info.value.reason is VerificationFailure.PAYLOAD_DECODE_ERROR

    def test_error_kind(self):
        """All verification errors should carry the signature kind."""
        with pytest.raises(SignatureVerificationError) as exc_info:
            construct_event(PAYLOAD, "", SECRET)
        assert exc_info.value.kind is ErrorKind.SIGNATURE_VERIFICATION
        assert exc_info.value.to_dict()["error"]["reason"] == "malformed_header"

    def test_envelope_is_immutable(self):
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        event = construct_event(PAYLOAD, header, SECRET, now=fixed_clock())
        with pytest.raises(Exception):
            event.id = "evt_2"  # type: ignore[misc]

    def test_uses_wall_clock_by_default(self):
        """Without an injected clock, a header stamped now should verify."""
        header = generate_test_header(PAYLOAD, SECRET)
        assert construct_event(PAYLOAD, header, SECRET).id == "evt_1"


class TestVerifySignature:
    """Tests for verify_signature."""

    def test_valid_signature(self):
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        assert verify_signature(PAYLOAD, header, SECRET, now=fixed_clock()) is True

    def test_every_single_byte_mutation_fails(self):
        """Flipping any one byte of the payload should break verification."""
        payload = PAYLOAD.encode()
        header = generate_test_header(payload, SECRET, timestamp=NOW)
        for i in range(len(payload)):
            mutated = payload[:i] + bytes([payload[i] ^ 0x01]) + payload[i + 1 :]
            assert verify_signature(mutated, header, SECRET, now=fixed_clock()) is False

    @pytest.mark.parametrize("header", ["", "t=abc,v1=x", "t=5", "nonsense"])
    def test_malformed_header_returns_false(self, header):
        assert verify_signature(PAYLOAD, header, SECRET, now=fixed_clock()) is False

    def test_stale_returns_false(self):
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW - 301)
        assert verify_signature(PAYLOAD, header, SECRET, now=fixed_clock()) is False

    def test_bytes_header_verifies(self):
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        assert verify_signature(PAYLOAD, header.encode(), SECRET, now=fixed_clock()) is True

    @pytest.mark.parametrize(
        ("payload", "header", "secret"),
        [
            (None, "valid", SECRET),
            (12345, "valid", SECRET),
            (PAYLOAD, "valid", None),
            (PAYLOAD, "valid", b"whsec_test"),
            (PAYLOAD, None, SECRET),
            (PAYLOAD, 1700000000, SECRET),
            (PAYLOAD, b"\xff\xfe", SECRET),
            (PAYLOAD, "t=\u0661\u0662,v1=abc", SECRET),
        ],
    )
    def test_unusable_inputs_return_false(self, payload, header, secret):
        """Wrongly typed or undecodable inputs should yield False, never raise."""
        if header == "valid":
            header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        assert verify_signature(payload, header, secret, now=fixed_clock()) is False

    def test_construct_event_rejects_none_payload(self):
        header = generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        with pytest.raises(SignatureVerificationError) as exc_info:
            construct_event(None, header, SECRET, now=fixed_clock())  # type: ignore[arg-type]
        assert exc_info.value.reason is VerificationFailure.SIGNATURE_MISMATCH

    def test_does_not_decode_payload(self):
        """verify_signature only checks the signature, not the JSON."""
        header = generate_test_header("not json", SECRET, timestamp=NOW)
        assert verify_signature("not json", header, SECRET, now=fixed_clock()) is True

    def test_roundtrip_over_many_timestamps(self):
        """Fresh headers should verify across a range of signing times."""
        current = int(time.time())
        for offset in (0, 1, 60, 299):
            header = generate_test_header(PAYLOAD, SECRET, timestamp=current - offset)
            assert verify_signature(PAYLOAD, header, SECRET, now=fixed_clock(current))


class TestWebhooksNamespace:
    """Tests for the Webhooks accessor."""

    def test_available_on_client_class(self):
        assert ACPClient.webhooks is Webhooks

    def test_static_methods(self):
        header = Webhooks.generate_test_header(PAYLOAD, SECRET, timestamp=NOW)
        assert Webhooks.verify_signature(PAYLOAD, header, SECRET, now=fixed_clock())
        event = Webhooks.construct_event(PAYLOAD, header, SECRET, now=fixed_clock())
        assert event.id == "evt_1"
        assert Webhooks.DEFAULT_TOLERANCE == 300
