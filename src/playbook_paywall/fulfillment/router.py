"""Stripe webhook and the non-production debug grant."""

import json
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from playbook_paywall.common.config import get_settings
from playbook_paywall.common.exceptions import (
    InvalidRequestError,
    ProductNotFoundError,
    ProfileWriteError,
    UnauthorizedError,
)
from playbook_paywall.common.security import require_user
from playbook_paywall.deps import get_fulfillment_service
from playbook_paywall.fulfillment.schemas import (
    DebugGrantRequest,
    DebugGrantResponse,
    FulfillmentRequest,
    RevocationRequest,
    WebhookResult,
)
from playbook_paywall.fulfillment.stripe_webhook import (
    parse_stripe_event,
    verify_stripe_signature,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_db():
    from playbook_paywall.deps import get_db
    return get_db()


async def require_debug_grants() -> None:
    """Make the debug endpoint look absent unless test mode is on outside production."""
    if not get_settings().debug_grants_enabled:
        raise HTTPException(status_code=404, detail="Not Found")


@router.post("/webhooks/stripe", response_model=WebhookResult)
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header("", alias="Stripe-Signature"),
    svc=Depends(get_fulfillment_service),
):
    """Handle Stripe checkout completion and subscription cancellation."""
    settings = get_settings()
    if not settings.stripe_webhook_secret:
        logger.error("Stripe webhook secret not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    body = await request.body()
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="No signature provided")
    if not verify_stripe_signature(
        body, stripe_signature, settings.stripe_webhook_secret,
        tolerance=settings.stripe_webhook_tolerance,
    ):
        logger.warning("Invalid Stripe webhook signature")
        raise HTTPException(status_code=400, detail="Webhook signature verification failed")

    try:
        event_data = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON")
    if not isinstance(event_data, dict):
        raise HTTPException(status_code=400, detail="Event payload must be a JSON object")

    try:
        action = parse_stripe_event(event_data)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=e.message)

    if action is None:
        return WebhookResult()

    db = _get_db()
    try:
        async with db.get_session() as session:
            if isinstance(action, FulfillmentRequest):
                entitlements = await svc.grant_entitlements(
                    session,
                    action.user_id,
                    action.product_id,
                    email=action.customer_email,
                    stripe_customer_id=action.stripe_customer_id,
                )
                return WebhookResult(
                    action="granted",
                    user_id=action.user_id,
                    entitlements=sorted(entitlements),
                )
            if isinstance(action, RevocationRequest):
                user_id = await svc.revoke_for_customer(session, action.stripe_customer_id)
                return WebhookResult(
                    action="revoked" if user_id else "ignored",
                    user_id=user_id,
                )
    except ProductNotFoundError as e:
        logger.error("Webhook for unknown product: %s", e.product_id)
        raise HTTPException(status_code=400, detail="Invalid product ID")
    except ProfileWriteError as e:
        # 5xx makes Stripe redeliver; the grant is idempotent.
        logger.error("Fulfillment write failed: %s", e.message)
        raise HTTPException(status_code=500, detail="Failed to update user profile")

    return WebhookResult()


@router.post(
    "/debug/grant-premium",
    response_model=DebugGrantResponse,
    dependencies=[Depends(require_debug_grants)],
)
async def debug_grant_premium(
    body: DebugGrantRequest,
    user=Depends(require_user),
    svc=Depends(get_fulfillment_service),
):
    """Grant a product's entitlements to the caller without payment."""
    db = _get_db()
    try:
        async with db.get_session() as session:
            entitlements = await svc.debug_grant(session, user, body.product_id)
    except UnauthorizedError:
        raise HTTPException(status_code=404, detail="Not Found")
    except ProductNotFoundError:
        raise HTTPException(status_code=400, detail="Invalid product ID")
    except ProfileWriteError as e:
        raise HTTPException(status_code=500, detail=e.message)

    return DebugGrantResponse(entitlements=sorted(entitlements))
