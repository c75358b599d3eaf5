"""Credits entitlements to profiles after payment."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from playbook_paywall.catalog.products import entitlements_for
from playbook_paywall.common.config import PaywallSettings
from playbook_paywall.common.exceptions import ProfileWriteError, UnauthorizedError
from playbook_paywall.identity.provider import AuthenticatedUser
from playbook_paywall.profiles.store import ProfileStore

logger = logging.getLogger(__name__)


class FulfillmentService:
    """Grants and revokes entitlements.

    Grants are idempotent: the stored set becomes ``current | product`` and
    nothing is written when that equals ``current``. Payment notifications
    may be redelivered any number of times.
    """

    def __init__(self, settings: PaywallSettings, profile_store: ProfileStore):
        self.settings = settings
        self.profiles = profile_store

    async def grant_entitlements(
        self,
        session: AsyncSession,
        user_id: str,
        product_id: str,
        email: Optional[str] = None,
        stripe_customer_id: Optional[str] = None,
    ) -> frozenset[str]:
        """Add a product's entitlements to a user's profile.

        Returns the resulting entitlement set.
        """
        granted = entitlements_for(product_id)
        attempts = max(1, self.settings.grant_max_attempts)

        for attempt in range(1, attempts + 1):
            try:
                profile = await self.profiles.create_if_absent(session, user_id, email)
            except SQLAlchemyError as e:
                raise ProfileWriteError(f"Failed to read profile: {e}") from e

            merged = profile.entitlements | granted
            customer_changed = bool(
                stripe_customer_id and stripe_customer_id != profile.stripe_customer_id
            )
            if merged == profile.entitlements and not customer_changed:
                await self._commit(session)
                logger.info(
                    "Entitlements already granted",
                    extra={"user_id": user_id, "product_id": product_id},
                )
                return profile.entitlements

            kwargs = {"stripe_customer_id": stripe_customer_id} if customer_changed else {}
            updated = await self.profiles.compare_and_set(session, profile, merged, **kwargs)
            if updated is not None:
                await self._commit(session)
                logger.info(
                    "Granted entitlements",
                    extra={
                        "user_id": user_id,
                        "product_id": product_id,
                        "entitlements": sorted(granted),
                    },
                )
                return updated.entitlements

            logger.info(
                "Profile changed concurrently, retrying grant",
                extra={"user_id": user_id, "attempt": attempt},
            )

        raise ProfileWriteError(
            f"Gave up granting {product_id} to {user_id} after {attempts} attempts"
        )

    async def debug_grant(
        self,
        session: AsyncSession,
        user: AuthenticatedUser,
        product_id: str,
    ) -> frozenset[str]:
        """Grant without payment. Never allowed in production."""
        if not self.settings.debug_grants_enabled:
            logger.warning(
                "Rejected debug grant",
                extra={"user_id": user.user_id, "environment": self.settings.environment},
            )
            raise UnauthorizedError()
        return await self.grant_entitlements(
            session, user.user_id, product_id, email=user.email,
        )

    async def revoke_for_customer(
        self, session: AsyncSession, stripe_customer_id: str
    ) -> Optional[str]:
        """Clear all entitlements of the profile bound to a Stripe customer.

        Returns the affected user id, or None when no profile matches.
        """
        attempts = max(1, self.settings.grant_max_attempts)
        for _ in range(attempts):
            try:
                profile = await self.profiles.find_by_stripe_customer(
                    session, stripe_customer_id
                )
            except SQLAlchemyError as e:
                raise ProfileWriteError(f"Failed to read profile: {e}") from e

            if profile is None:
                logger.warning(
                    "No profile for Stripe customer",
                    extra={"stripe_customer_id": stripe_customer_id},
                )
                return None
            if not profile.entitlements:
                return profile.id

            updated = await self.profiles.compare_and_set(session, profile, frozenset())
            if updated is not None:
                await self._commit(session)
                logger.info("Revoked entitlements", extra={"user_id": profile.id})
                return profile.id

        raise ProfileWriteError(
            f"Gave up revoking entitlements for customer {stripe_customer_id}"
        )

    async def _commit(self, session: AsyncSession) -> None:
        try:
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise ProfileWriteError(f"Failed to commit profile update: {e}") from e
