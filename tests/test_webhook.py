"""Tests for webhook verification."""

import logging
from unittest.mock import patch

import pytest

from stripe_webhook.errors import (
    InvalidHeader,
    InvalidSignature,
    TooNew,
    TooOld,
    WebhookError,
)
from stripe_webhook.types import SignatureHeader, VerificationConfig, VerifiedEvent
from stripe_webhook.utils.signature import compute_signature, generate_header, parse_header
from stripe_webhook.webhook import WebhookVerifier, verify_payload


class TestVerifyPayload:
    def test_fresh_signature(self, payload, secret, config, now):
        header = generate_header(payload, secret, timestamp=now)
        verified = verify_payload(payload, header, config, now=now)
        assert verified == VerifiedEvent(payload=payload, timestamp=now)

    def test_returns_bytes_untouched(self, secret, config, now):
        body = b'{ "id" : "evt_1",\n  "type":"x" }'
        header = generate_header(body, secret, timestamp=now)
        assert verify_payload(body, header, config, now=now).payload == body

    @pytest.mark.parametrize("index", [0, 10, -1])
    def test_single_byte_change(self, payload, secret, config, now, index):
        header = generate_header(payload, secret, timestamp=now)
        tampered = bytearray(payload)
        tampered[index] ^= 0x01
        with pytest.raises(InvalidSignature):
            verify_payload(bytes(tampered), header, config, now=now)

    def test_too_old(self, payload, secret, config, now):
        ts = now - int(config.max_age) - 1
        header = generate_header(payload, secret, timestamp=ts)
        with pytest.raises(TooOld):
            verify_payload(payload, header, config, now=now)

    def test_exactly_max_age_accepted(self, payload, secret, config, now):
        ts = now - int(config.max_age)
        header = generate_header(payload, secret, timestamp=ts)
        verify_payload(payload, header, config, now=now)

    def test_too_old_checked_before_signature(self, payload, config, now):
        header = generate_header(payload, "wrong", timestamp=now - 10_000)
        with pytest.raises(TooOld):
            verify_payload(payload, header, config, now=now)

    def test_future_timestamp_allowed_by_default(self, payload, secret, config, now):
        header = generate_header(payload, secret, timestamp=now + 3600)
        verify_payload(payload, header, config, now=now)

    def test_future_timestamp_bounded(self, payload, secret, now):
        config = VerificationConfig(secrets=(secret,), max_future_skew=60)
        header = generate_header(payload, secret, timestamp=now + 61)
        with pytest.raises(TooNew):
            verify_payload(payload, header, config, now=now)

        header = generate_header(payload, secret, timestamp=now + 60)
        verify_payload(payload, header, config, now=now)

    def test_only_v0(self, payload, secret, config, now):
        header = generate_header(payload, secret, timestamp=now, scheme="v0")
        with pytest.raises(InvalidHeader):
            verify_payload(payload, header, config, now=now)

    def test_v0_does_not_count(self, payload, secret, config, now):
        good_v0 = generate_header(payload, secret, timestamp=now, scheme="v0")
        header = good_v0 + "," + "v1=" + "00" * 32
        with pytest.raises(InvalidSignature):
            verify_payload(payload, header, config, now=now)

    @pytest.mark.parametrize("header", ["", None, "t=1700000000,v1"])
    def test_invalid_header(self, payload, config, now, header):
        with pytest.raises(InvalidHeader):
            verify_payload(payload, header, config, now=now)

    def test_one_of_many_v1_valid(self, payload, secret, config, now):
        digest = compute_signature(now, payload, secret).hex()
        header = f"t={now},v1={'ab' * 32},v1={digest},v1={'cd' * 32}"
        verify_payload(payload, header, config, now=now)

    def test_second_configured_secret(self, payload, now):
        config = VerificationConfig(secrets=("whsec_old", "whsec_new"))
        header = generate_header(payload, "whsec_new", timestamp=now)
        verify_payload(payload, header, config, now=now)

    def test_no_secret_matches(self, payload, now):
        config = VerificationConfig(secrets=("whsec_a", "whsec_b"))
        header = generate_header(payload, "whsec_c", timestamp=now)
        with pytest.raises(InvalidSignature):
            verify_payload(payload, header, config, now=now)

    @pytest.mark.parametrize("timestamp", ["1" + "0" * 400, "1" * 5000, "99999999999999999999"])
    def test_oversized_timestamp_with_float_now(self, payload, config, timestamp):
        header = f"t={timestamp},v1={'ab' * 32}"
        with pytest.raises(InvalidHeader):
            verify_payload(payload, header, config, now=1_700_000_000.5)

    def test_int64_max_timestamp_with_float_now(self, payload, secret, now):
        config = VerificationConfig(secrets=(secret,), max_future_skew=300)
        header = generate_header(payload, secret, timestamp=2 ** 63 - 1)
        with pytest.raises(TooNew):
            verify_payload(payload, header, config, now=now + 0.5)

    def test_int64_min_timestamp_with_float_now(self, payload, secret, config, now):
        header = generate_header(payload, secret, timestamp=-2 ** 63)
        with pytest.raises(TooOld):
            verify_payload(payload, header, config, now=now + 0.5)

    def test_header_object_with_only_v0(self, payload, secret, config, now):
        digest = compute_signature(now, payload, secret)
        with pytest.raises(InvalidHeader):
            verify_payload(payload, SignatureHeader(now, (("v0", digest),)), config, now=now)

    def test_header_object_without_signatures(self, payload, config, now):
        with pytest.raises(InvalidHeader):
            verify_payload(payload, SignatureHeader(now, ()), config, now=now)

    def test_header_object_v0_entry_never_matches(self, payload, secret, config, now):
        digest = compute_signature(now, payload, secret)
        header = SignatureHeader(now, (("v0", digest), ("v1", b"\x00" * 32)))
        with pytest.raises(InvalidSignature):
            verify_payload(payload, header, config, now=now)

    def test_truncated_signature(self, payload, secret, config, now):
        digest = compute_signature(now, payload, secret).hex()[:32]
        with pytest.raises(InvalidSignature):
            verify_payload(payload, f"t={now},v1={digest}", config, now=now)

    def test_str_payload(self, secret, config, now):
        header = generate_header("héllo".encode("utf-8"), secret, timestamp=now)
        assert verify_payload("héllo", header, config, now=now).payload == "héllo".encode("utf-8")

    def test_parsed_header(self, payload, secret, config, now):
        header = parse_header(generate_header(payload, secret, timestamp=now))
        verify_payload(payload, header, config, now=now)

    def test_defaults_to_current_time(self, payload, secret, config, now):
        header = generate_header(payload, secret, timestamp=now)
        with patch("stripe_webhook.webhook.time.time", return_value=now + 5):
            verify_payload(payload, header, config)
        with patch("stripe_webhook.webhook.time.time", return_value=now + 301):
            with pytest.raises(TooOld):
                verify_payload(payload, header, config)

    def test_errors_do_not_leak_secret(self, payload, secret, config, now):
        header = generate_header(payload, "wrong", timestamp=now)
        with pytest.raises(InvalidSignature) as exc_info:
            verify_payload(payload, header, config, now=now)
        expected = compute_signature(now, payload, secret).hex()
        assert secret not in str(exc_info.value)
        assert expected not in str(exc_info.value)


class TestWebhookVerifier:
    def test_requires_config(self):
        with pytest.raises(ValueError):
            WebhookVerifier("whsec_x")

    def test_verify(self, payload, secret, config, now):
        verifier = WebhookVerifier(config)
        header = generate_header(payload, secret, timestamp=now)
        assert verifier.verify(payload, header, now=now).payload == payload

    def test_verify_request_header_case(self, payload, secret, config, now):
        verifier = WebhookVerifier(config)
        header = generate_header(payload, secret, timestamp=now)
        for name in ("Stripe-Signature", "stripe-signature", "STRIPE-SIGNATURE"):
            verifier.verify_request(payload, {name: header}, now=now)

    def test_verify_request_missing_header(self, payload, config, now):
        verifier = WebhookVerifier(config)
        with pytest.raises(InvalidHeader):
            verifier.verify_request(payload, {"Content-Type": "application/json"}, now=now)

    def test_construct_event(self, payload, secret, config, now):
        verifier = WebhookVerifier(config)
        header = generate_header(payload, secret, timestamp=now)
        event = verifier.construct_event(payload, header, now=now)
        assert event.id == "evt_1"
        assert event.type == "charge.succeeded"
        assert event.data.object == {"id": "ch_1"}

    def test_construct_event_wrong_field_type(self, secret, config, now):
        body = b'{"id":"evt_1","type":"x","data":"x"}'
        verifier = WebhookVerifier(config)
        header = generate_header(body, secret, timestamp=now)
        with pytest.raises(ValueError):
            verifier.construct_event(body, header, now=now)

    def test_construct_event_not_json(self, secret, config, now):
        verifier = WebhookVerifier(config)
        header = generate_header(b"not json", secret, timestamp=now)
        with pytest.raises(ValueError):
            verifier.construct_event(b"not json", header, now=now)

    def test_rotate(self, payload, now):
        verifier = WebhookVerifier(VerificationConfig(secrets=("whsec_old",)))
        header = generate_header(payload, "whsec_new", timestamp=now)
        with pytest.raises(InvalidSignature):
            verifier.verify(payload, header, now=now)

        new = VerificationConfig(secrets=("whsec_new", "whsec_old"))
        previous = verifier.rotate(new)

        assert previous.secrets == (b"whsec_old",)
        assert verifier.config is new
        verifier.verify(payload, header, now=now)

    def test_rotate_requires_config(self, config):
        verifier = WebhookVerifier(config)
        with pytest.raises(ValueError):
            verifier.rotate(None)
        assert verifier.config is config

    def test_logs_rejection_kind(self, payload, secret, config, now, caplog):
        verifier = WebhookVerifier(config)
        header = generate_header(payload, "wrong", timestamp=now)
        with caplog.at_level(logging.WARNING, logger="stripe_webhook.webhook"):
            with pytest.raises(WebhookError):
                verifier.verify(payload, header, now=now)
        assert "InvalidSignature" in caplog.text
        assert secret not in caplog.text

    def test_custom_logger(self, payload, config, now):
        logger = logging.getLogger("custom")
        verifier = WebhookVerifier(config, logger=logger)
        with patch.object(logger, "warning") as warning:
            with pytest.raises(InvalidHeader):
                verifier.verify(payload, "", now=now)
        warning.assert_called_once()
