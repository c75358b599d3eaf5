"""Tests for Stripe webhook parsing and signature verification."""

import hashlib
import hmac
import time

import pytest

from playbook_paywall.common.exceptions import InvalidRequestError
from playbook_paywall.fulfillment.schemas import FulfillmentRequest, RevocationRequest
from playbook_paywall.fulfillment.stripe_webhook import (
    parse_stripe_event,
    verify_stripe_signature,
)


def _sign(payload: bytes, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


class TestParseCheckoutCompleted:
    def _checkout_event(self, **overrides):
        metadata = {
            "user_id": "user-alice",
            "product_id": "ios_playbook",
            "currency": "USD",
            **(overrides.pop("metadata", {})),
        }
        return {
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_test_123",
                    "customer": "cus_123",
                    "customer_email": "alice@example.com",
                    "customer_details": {"name": "Alice", "email": "alice@example.com"},
                    "metadata": metadata,
                    **overrides,
                }
            },
        }

    def test_parse_valid_checkout(self):
        req = parse_stripe_event(self._checkout_event())
        assert isinstance(req, FulfillmentRequest)
        assert req.user_id == "user-alice"
        assert req.product_id == "ios_playbook"
        assert req.customer_email == "alice@example.com"
        assert req.stripe_customer_id == "cus_123"
        assert req.session_id == "cs_test_123"

    def test_email_falls_back_to_customer_details(self):
        req = parse_stripe_event(self._checkout_event(customer_email=None))
        assert req.customer_email == "alice@example.com"

    def test_guest_checkout_has_no_customer(self):
        req = parse_stripe_event(self._checkout_event(customer=None))
        assert req.stripe_customer_id is None

    def test_missing_user_id_is_rejected(self):
        event = self._checkout_event()
        event["data"]["object"]["metadata"] = {"product_id": "ios_playbook"}
        with pytest.raises(InvalidRequestError):
            parse_stripe_event(event)

    def test_missing_metadata_is_rejected(self):
        event = self._checkout_event()
        event["data"]["object"]["metadata"] = None
        with pytest.raises(InvalidRequestError):
            parse_stripe_event(event)


class TestParseOtherEvents:
    def test_subscription_deleted(self):
        req = parse_stripe_event({
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_1", "customer": "cus_9"}},
        })
        assert isinstance(req, RevocationRequest)
        assert req.stripe_customer_id == "cus_9"

    def test_subscription_deleted_without_customer(self):
        assert parse_stripe_event({
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_1"}},
        }) is None

    def test_ignores_unrelated_event(self):
        assert parse_stripe_event({
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": "pi_1"}},
        }) is None

    def test_ignores_empty_event(self):
        assert parse_stripe_event({}) is None

    @pytest.mark.parametrize("event", [[], "checkout.session.completed", 42])
    def test_non_object_event_is_rejected(self, event):
        with pytest.raises(InvalidRequestError):
            parse_stripe_event(event)

    def test_non_object_data_is_ignored(self):
        assert parse_stripe_event({"type": "invoice.paid", "data": []}) is None

    def test_non_object_metadata_is_rejected(self):
        with pytest.raises(InvalidRequestError):
            parse_stripe_event({
                "type": "checkout.session.completed",
                "data": {"object": {"id": "cs_1", "metadata": ["user_id"]}},
            })


class TestVerifySignature:
    secret = "whsec_test_secret"
    payload = b'{"type":"checkout.session.completed"}'

    def test_valid_signature(self):
        ts = int(time.time())
        header = f"t={ts},v1={_sign(self.payload, self.secret, ts)}"
        assert verify_stripe_signature(self.payload, header, self.secret) is True

    def test_any_of_multiple_v1_signatures(self):
        ts = int(time.time())
        header = f"t={ts},v1=deadbeef,v1={_sign(self.payload, self.secret, ts)}"
        assert verify_stripe_signature(self.payload, header, self.secret) is True

    def test_wrong_secret(self):
        ts = int(time.time())
        header = f"t={ts},v1={_sign(self.payload, 'other', ts)}"
        assert verify_stripe_signature(self.payload, header, self.secret) is False

    def test_tampered_payload(self):
        ts = int(time.time())
        header = f"t={ts},v1={_sign(self.payload, self.secret, ts)}"
        assert verify_stripe_signature(self.payload + b" ", header, self.secret) is False

    def test_stale_timestamp(self):
        ts = 1_700_000_000
        header = f"t={ts},v1={_sign(self.payload, self.secret, ts)}"
        assert verify_stripe_signature(
            self.payload, header, self.secret, now=ts + 301,
        ) is False
        assert verify_stripe_signature(
            self.payload, header, self.secret, now=ts + 299,
        ) is True

    def test_zero_tolerance_skips_timestamp_check(self):
        ts = 1_700_000_000
        header = f"t={ts},v1={_sign(self.payload, self.secret, ts)}"
        assert verify_stripe_signature(self.payload, header, self.secret, tolerance=0) is True

    def test_malformed_header(self):
        assert verify_stripe_signature(self.payload, "t=abc,v1=bad", self.secret) is False
        assert verify_stripe_signature(self.payload, "v1=bad", self.secret) is False

    def test_empty_header(self):
        assert verify_stripe_signature(self.payload, "", self.secret) is False

    def test_empty_secret(self):
        assert verify_stripe_signature(self.payload, "t=1,v1=x", "") is False
