"""Product catalog for the Flutter-to-native playbooks.

Each product maps to the entitlement tags it grants on purchase. Prices are
stored in minor units; the Stripe price IDs that back them are deployment
configuration and are looked up from settings per (product, currency).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from playbook_paywall.common.config import PaywallSettings
from playbook_paywall.common.exceptions import (
    ConfigurationError,
    ProductNotFoundError,
    UnsupportedCurrencyError,
)

# ── Entitlement tags ──
IOS_PREMIUM = "ios_premium"
ANDROID_PREMIUM = "android_premium"
BUNDLE_PREMIUM = "bundle_premium"

PLATFORM_ENTITLEMENTS = {
    "ios": IOS_PREMIUM,
    "android": ANDROID_PREMIUM,
}


class ProductId(str, Enum):
    IOS_PLAYBOOK = "ios_playbook"
    ANDROID_PLAYBOOK = "android_playbook"
    BUNDLE_PLAYBOOK = "bundle_playbook"


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"


_CURRENCY_SYMBOLS = {Currency.USD: "$", Currency.EUR: "€"}


@dataclass(frozen=True)
class Product:
    id: ProductId
    name: str
    description: str
    amounts: dict[Currency, int]
    entitlements: frozenset[str]


PRODUCTS: dict[ProductId, Product] = {
    ProductId.IOS_PLAYBOOK: Product(
        id=ProductId.IOS_PLAYBOOK,
        name="Flutter to iOS Playbook",
        description="Interactive guide for migrating a Flutter app to native iOS",
        amounts={Currency.USD: 1999, Currency.EUR: 1999},
        entitlements=frozenset({IOS_PREMIUM}),
    ),
    ProductId.ANDROID_PLAYBOOK: Product(
        id=ProductId.ANDROID_PLAYBOOK,
        name="Flutter to Android Playbook",
        description="Interactive guide for migrating a Flutter app to native Android",
        amounts={Currency.USD: 1999, Currency.EUR: 1999},
        entitlements=frozenset({ANDROID_PREMIUM}),
    ),
    ProductId.BUNDLE_PLAYBOOK: Product(
        id=ProductId.BUNDLE_PLAYBOOK,
        name="Flutter Playbook Bundle (iOS + Android)",
        description="Both playbooks at a bundle discount",
        amounts={Currency.USD: 2999, Currency.EUR: 2999},
        entitlements=frozenset({IOS_PREMIUM, ANDROID_PREMIUM, BUNDLE_PREMIUM}),
    ),
}


def get_product(product_id: str) -> Product:
    """Return the product for an identifier, or raise ProductNotFoundError."""
    try:
        return PRODUCTS[ProductId(product_id)]
    except ValueError:
        raise ProductNotFoundError(str(product_id)) from None


def entitlements_for(product_id: str) -> frozenset[str]:
    return get_product(product_id).entitlements


def parse_currency(currency: str) -> Currency:
    try:
        return Currency(currency)
    except ValueError:
        raise UnsupportedCurrencyError(str(currency)) from None


def price_handle(product_id: str, currency: str, settings: PaywallSettings) -> str:
    """Return the configured Stripe price ID for a product in a currency."""
    product = get_product(product_id)
    cur = parse_currency(currency)
    price_id = settings.price_handles.get((product.id.value, cur.value), "")
    if not price_id:
        raise ConfigurationError(
            f"No Stripe price configured for {product.id.value}/{cur.value}"
        )
    return price_id


def format_price(amount: int, currency: str) -> str:
    """Render an amount in minor units, e.g. 1999 USD -> '$19.99'."""
    cur = parse_currency(currency)
    return f"{_CURRENCY_SYMBOLS[cur]}{amount / 100:,.2f}"


def product_for_platform(platform: str) -> Optional[ProductId]:
    """Single-platform product sold on a platform's site, if any."""
    if platform == "ios":
        return ProductId.IOS_PLAYBOOK
    if platform == "android":
        return ProductId.ANDROID_PLAYBOOK
    return None
