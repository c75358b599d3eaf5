"""Turns a product choice into a payment-provider redirect."""

import logging
from dataclasses import dataclass
from typing import Optional

from playbook_paywall.catalog.products import get_product, parse_currency, price_handle
from playbook_paywall.common.config import PaywallSettings
from playbook_paywall.common.exceptions import UnauthenticatedError
from playbook_paywall.identity.provider import AuthenticatedUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    redirect_url: str
    user_id: str
    product_id: str


class CheckoutService:
    """Creates checkout sessions tagged for later fulfillment.

    The session metadata carries ``user_id`` and ``product_id``; the Stripe
    webhook reads them back to credit the right profile. Nothing is granted
    here.
    """

    def __init__(self, settings: PaywallSettings, payment_provider):
        self.settings = settings
        self.payment_provider = payment_provider

    def resolve_base_url(self, origin: Optional[str]) -> str:
        """Use the request origin only if it is one of our own sites."""
        if origin and origin.rstrip("/") in self.settings.allowed_origins:
            return origin.rstrip("/")
        return self.settings.site_url.rstrip("/")

    async def create_checkout_session(
        self,
        user: Optional[AuthenticatedUser],
        product_id: str,
        currency: str = "USD",
        origin: Optional[str] = None,
    ) -> CheckoutSession:
        if user is None or not user.user_id:
            raise UnauthenticatedError()

        product = get_product(product_id)
        cur = parse_currency(currency)
        price_id = price_handle(product.id.value, cur.value, self.settings)

        base_url = self.resolve_base_url(origin)
        provider_session = await self.payment_provider.create_session(
            price_id=price_id,
            success_url=f"{base_url}/pricing?success=true",
            cancel_url=f"{base_url}/pricing?canceled=true",
            metadata={
                "user_id": user.user_id,
                "product_id": product.id.value,
                "currency": cur.value,
                "domain": base_url,
            },
            customer_email=user.email,
        )

        logger.info(
            "Created checkout session",
            extra={
                "session_id": provider_session.session_id,
                "user_id": user.user_id,
                "product_id": product.id.value,
                "currency": cur.value,
            },
        )
        return CheckoutSession(
            session_id=provider_session.session_id,
            redirect_url=provider_session.redirect_url,
            user_id=user.user_id,
            product_id=product.id.value,
        )
