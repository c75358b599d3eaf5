"""Dependency injection singletons for Playbook Paywall."""

from playbook_paywall.checkout.provider import StripePaymentProvider
from playbook_paywall.checkout.service import CheckoutService
from playbook_paywall.common.config import get_settings
from playbook_paywall.common.database import DatabaseManager
from playbook_paywall.fulfillment.service import FulfillmentService
from playbook_paywall.identity.provider import SupabaseIdentityProvider
from playbook_paywall.leads.service import LeadService
from playbook_paywall.profiles.store import ProfileStore

_db: DatabaseManager | None = None
_profiles: ProfileStore | None = None
_identity: SupabaseIdentityProvider | None = None
_payments: StripePaymentProvider | None = None
_checkout: CheckoutService | None = None
_fulfillment: FulfillmentService | None = None
_leads: LeadService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_profile_store() -> ProfileStore:
    global _profiles
    if _profiles is None:
        _profiles = ProfileStore(timeout=get_settings().db_timeout_seconds)
    return _profiles


def get_identity_provider() -> SupabaseIdentityProvider:
    global _identity
    if _identity is None:
        settings = get_settings()
        _identity = SupabaseIdentityProvider(
            base_url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            timeout=settings.http_timeout_seconds,
        )
    return _identity


def get_payment_provider() -> StripePaymentProvider:
    global _payments
    if _payments is None:
        settings = get_settings()
        _payments = StripePaymentProvider(
            api_key=settings.stripe_secret_key,
            timeout=settings.payment_timeout_seconds,
        )
    return _payments


def get_checkout_service() -> CheckoutService:
    global _checkout
    if _checkout is None:
        _checkout = CheckoutService(get_settings(), get_payment_provider())
    return _checkout


def get_fulfillment_service() -> FulfillmentService:
    global _fulfillment
    if _fulfillment is None:
        _fulfillment = FulfillmentService(get_settings(), get_profile_store())
    return _fulfillment


def get_lead_service() -> LeadService:
    global _leads
    if _leads is None:
        _leads = LeadService(get_settings())
    return _leads


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _profiles, _identity, _payments, _checkout, _fulfillment, _leads
    _db = None
    _profiles = None
    _identity = None
    _payments = None
    _checkout = None
    _fulfillment = None
    _leads = None
