"""Playbook Paywall: product catalog, entitlements and Stripe fulfillment."""

from playbook_paywall.catalog.products import (
    ProductId,
    entitlements_for,
    get_product,
)
from playbook_paywall.entitlements.resolver import (
    Platform,
    evaluate_access,
    has_access,
    is_pro_user,
    resolve_platform_context,
)

__all__ = [
    "Platform",
    "ProductId",
    "entitlements_for",
    "evaluate_access",
    "get_product",
    "has_access",
    "is_pro_user",
    "resolve_platform_context",
]
__version__ = "0.1.0"
