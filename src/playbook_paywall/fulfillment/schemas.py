"""Pydantic schemas for fulfillment events and endpoints."""

from typing import Optional

from pydantic import BaseModel


class FulfillmentRequest(BaseModel):
    """A confirmed purchase to credit to a profile."""

    user_id: str
    product_id: str
    customer_email: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    session_id: str = ""


class RevocationRequest(BaseModel):
    """A cancelled Stripe customer whose entitlements should be cleared."""

    stripe_customer_id: str


class WebhookResult(BaseModel):
    received: bool = True
    action: str = "ignored"
    user_id: Optional[str] = None
    entitlements: Optional[list[str]] = None


class DebugGrantRequest(BaseModel):
    product_id: str = "ios_playbook"


class DebugGrantResponse(BaseModel):
    ok: bool = True
    entitlements: list[str]
