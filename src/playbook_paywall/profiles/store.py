"""Profile persistence with compare-and-swap entitlement writes."""

import asyncio
import logging
from typing import Iterable, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from playbook_paywall.common.exceptions import ProfileWriteError
from playbook_paywall.profiles.models import ProfileModel
from playbook_paywall.profiles.schemas import Profile

logger = logging.getLogger(__name__)

_UNSET = object()


def _insert_ignoring_conflicts(session: AsyncSession):
    """INSERT that is a no-op when the primary key already exists."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as pg_insert
        return pg_insert(ProfileModel).on_conflict_do_nothing(index_elements=["id"])
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert
        return sqlite_insert(ProfileModel).on_conflict_do_nothing(index_elements=["id"])
    return insert(ProfileModel)


class ProfileStore:
    """Read and conditionally write profile rows.

    Entitlement writes carry the version they were computed from and only
    land if the row still has that version, so two concurrent grants can
    never overwrite each other's additions.

    Every statement is bounded by ``timeout`` seconds; a statement that
    blocks longer (for example on another transaction's row lock) raises
    ProfileWriteError.
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    async def _execute(self, session: AsyncSession, statement, action: str):
        try:
            if self.timeout:
                return await asyncio.wait_for(session.execute(statement), self.timeout)
            return await session.execute(statement)
        except asyncio.TimeoutError as e:
            logger.error("Profile store timed out", extra={"action": action, "timeout": self.timeout})
            raise ProfileWriteError(f"Timed out trying to {action}") from e
        except SQLAlchemyError as e:
            logger.error("Profile store failed", extra={"action": action})
            raise ProfileWriteError(f"Failed to {action}: {e}") from e

    async def read(self, session: AsyncSession, user_id: str) -> Profile | None:
        result = await self._execute(
            session,
            select(ProfileModel)
            .where(ProfileModel.id == user_id)
            .execution_options(populate_existing=True),
            "read profile",
        )
        row = result.scalar_one_or_none()
        return Profile.model_validate(row) if row is not None else None

    async def find_by_stripe_customer(
        self, session: AsyncSession, stripe_customer_id: str
    ) -> Profile | None:
        result = await self._execute(
            session,
            select(ProfileModel)
            .where(ProfileModel.stripe_customer_id == stripe_customer_id)
            .limit(1)
            .execution_options(populate_existing=True),
            "look up Stripe customer",
        )
        row = result.scalar_one_or_none()
        return Profile.model_validate(row) if row is not None else None

    async def create_if_absent(
        self, session: AsyncSession, user_id: str, email: Optional[str] = None
    ) -> Profile:
        """Return the profile, inserting an empty one first if needed."""
        existing = await self.read(session, user_id)
        if existing is not None:
            return existing

        await self._execute(
            session,
            _insert_ignoring_conflicts(session).values(
                id=user_id, email=email, entitlements=[], version=0,
            ),
            "create profile",
        )

        created = await self.read(session, user_id)
        if created is None:
            raise ProfileWriteError(f"Profile for user {user_id} vanished after insert")
        logger.info("Created profile", extra={"user_id": user_id})
        return created

    async def compare_and_set(
        self,
        session: AsyncSession,
        profile: Profile,
        entitlements: Iterable[str],
        stripe_customer_id=_UNSET,
    ) -> Profile | None:
        """Write a new entitlement set if the row is still at ``profile.version``.

        Returns the updated profile, or None when another writer got there
        first and the caller must re-read.
        """
        new_set = frozenset(entitlements)
        values = {
            "entitlements": sorted(new_set),
            "version": profile.version + 1,
        }
        if stripe_customer_id is not _UNSET:
            values["stripe_customer_id"] = stripe_customer_id

        result = await self._execute(
            session,
            update(ProfileModel)
            .where(
                ProfileModel.id == profile.id,
                ProfileModel.version == profile.version,
            )
            .values(**values)
            .execution_options(synchronize_session=False),
            "update profile",
        )

        if result.rowcount != 1:
            return None

        return profile.model_copy(update={
            "entitlements": new_set,
            "version": profile.version + 1,
            "stripe_customer_id": (
                profile.stripe_customer_id
                if stripe_customer_id is _UNSET else stripe_customer_id
            ),
        })
