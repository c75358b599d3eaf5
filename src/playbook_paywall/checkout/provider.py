"""Stripe Checkout session creation."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import stripe

from playbook_paywall.common.exceptions import ConfigurationError, PaymentProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSession:
    session_id: str
    redirect_url: str


class StripePaymentProvider:
    """Creates one-time-payment Checkout sessions.

    The Stripe SDK is synchronous, so calls run in a worker thread and are
    abandoned after ``timeout`` seconds.
    """

    def __init__(self, api_key: str, timeout: float = 20.0):
        self.api_key = api_key
        self.timeout = timeout

    async def create_session(
        self,
        *,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
        customer_email: Optional[str] = None,
    ) -> ProviderSession:
        if not self.api_key:
            raise ConfigurationError("Stripe not configured")

        params = {
            "mode": "payment",
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        if customer_email:
            params["customer_email"] = customer_email

        def _create():
            return stripe.checkout.Session.create(api_key=self.api_key, **params)

        try:
            session = await asyncio.wait_for(
                asyncio.to_thread(_create), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error("Stripe session creation timed out after %ss", self.timeout)
            raise PaymentProviderError("Stripe session creation timed out")
        except stripe.StripeError as e:
            logger.error("Stripe session creation failed: %s", e)
            raise PaymentProviderError("Stripe session creation failed") from e

        return ProviderSession(session_id=session.id, redirect_url=session.url)
