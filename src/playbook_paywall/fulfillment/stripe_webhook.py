"""Stripe webhook verification and event parsing."""

import hashlib
import hmac
import logging
import time
from typing import Any, Optional, Union

from playbook_paywall.common.exceptions import InvalidRequestError
from playbook_paywall.fulfillment.schemas import FulfillmentRequest, RevocationRequest

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"


def verify_stripe_signature(
    payload: bytes,
    signature_header: str,
    webhook_secret: str,
    tolerance: int = 300,
    now: Optional[float] = None,
) -> bool:
    """Verify Stripe webhook signature (v1 scheme).

    Stripe sends: t=<timestamp>,v1=<signature>[,v1=<signature>...]
    """
    if not signature_header or not webhook_secret:
        return False

    timestamp = ""
    signatures = []
    for item in signature_header.split(","):
        key, _, value = item.partition("=")
        key = key.strip()
        if key == "t":
            timestamp = value.strip()
        elif key == "v1":
            signatures.append(value.strip())

    if not timestamp or not signatures:
        return False
    try:
        ts = int(timestamp)
    except ValueError:
        return False

    current = time.time() if now is None else now
    if tolerance and abs(current - ts) > tolerance:
        logger.warning("Stripe signature timestamp outside tolerance")
        return False

    signed_payload = f"{timestamp}.".encode() + payload
    computed = hmac.new(
        webhook_secret.encode(),
        signed_payload,
        hashlib.sha256,
    ).hexdigest()

    return any(hmac.compare_digest(computed, sig) for sig in signatures)


def parse_stripe_event(
    event_data: dict[str, Any],
) -> Union[FulfillmentRequest, RevocationRequest, None]:
    """Map a Stripe event to the action it calls for.

    Returns None for event types that need no state change. Raises
    InvalidRequestError when a completed checkout cannot be attributed to a
    user and product; redelivering the same event would not fix that.
    """
    if not isinstance(event_data, dict):
        raise InvalidRequestError("Stripe event must be a JSON object")
    event_type = event_data.get("type", "")
    data = event_data.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    if not isinstance(obj, dict):
        obj = {}

    if event_type == CHECKOUT_COMPLETED:
        metadata = obj.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        customer_details = obj.get("customer_details")
        if not isinstance(customer_details, dict):
            customer_details = {}

        user_id = metadata.get("user_id", "")
        product_id = metadata.get("product_id", "")
        if not user_id or not product_id:
            logger.warning(
                "Stripe checkout %s missing user_id/product_id in metadata",
                obj.get("id", ""),
            )
            raise InvalidRequestError("Checkout session missing user_id/product_id metadata")

        return FulfillmentRequest(
            user_id=user_id,
            product_id=product_id,
            customer_email=obj.get("customer_email") or customer_details.get("email"),
            stripe_customer_id=obj.get("customer") or None,
            session_id=obj.get("id", ""),
        )

    if event_type == SUBSCRIPTION_DELETED:
        customer_id = obj.get("customer")
        if not customer_id:
            logger.warning("Subscription deletion without customer id")
            return None
        return RevocationRequest(stripe_customer_id=customer_id)

    logger.debug("Ignoring Stripe event type: %s", event_type)
    return None
