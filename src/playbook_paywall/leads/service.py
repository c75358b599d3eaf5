"""Lead capture: store the email locally, then forward to Loops."""

import logging

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from playbook_paywall.catalog.products import get_product
from playbook_paywall.common.config import PaywallSettings
from playbook_paywall.common.exceptions import InvalidRequestError
from playbook_paywall.leads.models import LeadCaptureModel

logger = logging.getLogger(__name__)

LOOPS_CONTACTS_URL = "https://app.loops.so/api/v1/contacts/create"
LOOPS_USER_GROUP = "FlutterToNative Leads"


class LeadService:
    """Upserts leads by email.

    ``forward_to_loops`` is separate so callers can run it once the capture
    has committed; it never raises.
    """

    def __init__(
        self,
        settings: PaywallSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self._transport = transport

    async def capture_lead(
        self,
        session: AsyncSession,
        email: str,
        source: str = "",
        consent_given: bool = False,
        target_product: str | None = None,
    ) -> LeadCaptureModel:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise InvalidRequestError("Invalid email address")
        if not consent_given:
            raise InvalidRequestError("Consent is required")
        product = get_product(target_product or "ios_playbook")

        result = await session.execute(
            select(LeadCaptureModel).where(LeadCaptureModel.email == email)
        )
        lead = result.scalar_one_or_none()
        if lead is None:
            lead = LeadCaptureModel(email=email)
            session.add(lead)
        lead.source = source
        lead.consent_given = consent_given
        lead.target_product = product.id.value
        await session.flush()
        return lead

    async def forward_to_loops(self, lead: LeadCaptureModel) -> bool:
        """Best-effort push to the marketing list."""
        if not self.settings.loops_api_key:
            return False
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    LOOPS_CONTACTS_URL,
                    headers={
                        "Authorization": f"Bearer {self.settings.loops_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "email": lead.email,
                        "source": lead.source,
                        "userGroup": LOOPS_USER_GROUP,
                        "targetProduct": lead.target_product,
                    },
                )
            if resp.status_code in (200, 201):
                logger.info("Lead forwarded to Loops")
                return True
            logger.warning("Loops error: %s %s", resp.status_code, resp.text)
            return False
        except Exception:
            logger.exception("Loops forward failed")
            return False
