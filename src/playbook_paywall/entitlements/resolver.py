"""Entitlement resolution and platform detection.

Everything here is pure: callers pass the user's entitlement set and the
request's host/path explicitly, and get a decision back.

Rules:
- The bundle tag unlocks every platform.
- A platform tag unlocks only its own platform.
- Host beats path when both name a platform.
- An unresolved platform (the selector landing page) needs the bundle.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from playbook_paywall.catalog.products import (
    ANDROID_PREMIUM,
    BUNDLE_PREMIUM,
    IOS_PREMIUM,
    PLATFORM_ENTITLEMENTS,
)

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "0.0.0.0"})


class Platform(str, Enum):
    IOS = "ios"
    ANDROID = "android"
    UNRESOLVED = "unresolved"


def has_access(entitlements: Iterable[str], tag: str) -> bool:
    """True if the tag is held directly or implied by the bundle."""
    held = frozenset(entitlements)
    return tag in held or BUNDLE_PREMIUM in held


def _strip_port(host: str) -> str:
    host = host.strip().lower()
    if host.startswith("["):
        # [::1]:3000
        return host[1:].split("]", 1)[0]
    if host.count(":") == 1:
        return host.split(":", 1)[0]
    return host


def _platform_from_host(host: Optional[str]) -> Optional[Platform]:
    if not host:
        return None
    hostname = _strip_port(host)
    if hostname in _LOCAL_HOSTS or hostname.endswith(".localhost"):
        return None
    label = hostname.split(".", 1)[0]
    for platform in (Platform.IOS, Platform.ANDROID):
        if label == platform.value or label.startswith(f"{platform.value}-"):
            return platform
    return None


def _platform_from_path(path: Optional[str]) -> Optional[Platform]:
    if path is None:
        return None
    segments = [s for s in path.split("?", 1)[0].split("/") if s]
    if not segments:
        return Platform.UNRESOLVED
    first = segments[0].lower()
    if first == Platform.ANDROID.value:
        return Platform.ANDROID
    if first == Platform.IOS.value:
        return Platform.IOS
    return None


def resolve_platform_context(
    host: Optional[str], path: Optional[str]
) -> Platform:
    """Classify a request as iOS, Android, or unresolved.

    A platform-specific host wins outright. Otherwise the first path segment
    decides; the bare root path is the platform selector (unresolved). Any
    other content path defaults to iOS.
    """
    from_host = _platform_from_host(host)
    if from_host is not None:
        return from_host
    from_path = _platform_from_path(path)
    if from_path is not None:
        return from_path
    return Platform.IOS


def is_pro_user(entitlements: Iterable[str], platform: Platform) -> bool:
    held = frozenset(entitlements)
    if BUNDLE_PREMIUM in held:
        return True
    tag = PLATFORM_ENTITLEMENTS.get(Platform(platform).value)
    return tag is not None and tag in held


@dataclass(frozen=True)
class AccessDecision:
    platform: Platform
    is_logged_in: bool
    is_pro: bool
    has_ios_premium: bool
    has_android_premium: bool
    has_bundle_premium: bool
    should_show_upgrade: bool
    can_upgrade_to_bundle: bool


def evaluate_access(
    entitlements: Optional[Iterable[str]], platform: Platform
) -> AccessDecision:
    """Build the full gate decision for a page.

    ``entitlements`` is None for anonymous visitors.
    """
    is_logged_in = entitlements is not None
    held = frozenset(entitlements or ())

    has_bundle = BUNDLE_PREMIUM in held
    has_ios = has_access(held, IOS_PREMIUM)
    has_android = has_access(held, ANDROID_PREMIUM)
    is_pro = is_pro_user(held, platform)

    return AccessDecision(
        platform=Platform(platform),
        is_logged_in=is_logged_in,
        is_pro=is_pro,
        has_ios_premium=has_ios,
        has_android_premium=has_android,
        has_bundle_premium=has_bundle,
        should_show_upgrade=is_logged_in and not is_pro,
        can_upgrade_to_bundle=not has_bundle and (IOS_PREMIUM in held) != (ANDROID_PREMIUM in held),
    )
