"""Typed profile record and profile API schemas."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from playbook_paywall.entitlements.resolver import Platform


class Profile(BaseModel):
    """A profile row, validated at the persistence boundary.

    Storage may hold ``null`` or junk in the entitlement column; it is
    normalised here so nothing downstream has to care.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    email: Optional[str] = None
    entitlements: frozenset[str] = frozenset()
    stripe_customer_id: Optional[str] = None
    version: int = 0

    @field_validator("entitlements", mode="before")
    @classmethod
    def _normalize_entitlements(cls, value: Any) -> frozenset[str]:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple, set, frozenset)):
            return frozenset()
        return frozenset(
            item.strip() for item in value
            if isinstance(item, str) and item.strip()
        )

    @field_validator("version", mode="before")
    @classmethod
    def _normalize_version(cls, value: Any) -> int:
        return value or 0


class AccessResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    entitlements: list[str]
    platform: Platform
    is_logged_in: bool
    is_pro: bool
    has_ios_premium: bool
    has_android_premium: bool
    has_bundle_premium: bool
    should_show_upgrade: bool
    can_upgrade_to_bundle: bool
