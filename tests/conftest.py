"""Shared test fixtures for Playbook Paywall."""

import hashlib
import hmac
import time

import pytest
from httpx import ASGITransport, AsyncClient

from playbook_paywall.checkout.provider import ProviderSession
from playbook_paywall.common.exceptions import UnauthenticatedError
from playbook_paywall.identity.provider import AuthenticatedUser


WEBHOOK_SECRET = "whsec_test_secret"

ALICE = AuthenticatedUser(user_id="user-alice", email="alice@example.com")
BOB = AuthenticatedUser(user_id="user-bob", email="bob@example.com")
USERS_BY_TOKEN = {"token-alice": ALICE, "token-bob": BOB}

BASE_ENV = {
    "PAYWALL_DB_URL": "sqlite+aiosqlite://",
    "PAYWALL_ENVIRONMENT": "development",
    "PAYWALL_VERCEL_ENV": "",
    "PAYWALL_PREMIUM_TEST_MODE": "true",
    "PAYWALL_SITE_URL": "https://www.fluttertonative.pro",
    "PAYWALL_IOS_SITE_URL": "https://ios.fluttertonative.pro",
    "PAYWALL_ANDROID_SITE_URL": "https://android.fluttertonative.pro",
    "PAYWALL_SUPABASE_URL": "https://project.supabase.co",
    "PAYWALL_SUPABASE_ANON_KEY": "anon-key",
    "PAYWALL_STRIPE_SECRET_KEY": "sk_test_123",
    "PAYWALL_STRIPE_WEBHOOK_SECRET": WEBHOOK_SECRET,
    "PAYWALL_STRIPE_PRICE_ID_IOS_USD": "price_ios_usd",
    "PAYWALL_STRIPE_PRICE_ID_IOS_EUR": "price_ios_eur",
    "PAYWALL_STRIPE_PRICE_ID_ANDROID_USD": "price_android_usd",
    "PAYWALL_STRIPE_PRICE_ID_ANDROID_EUR": "price_android_eur",
    "PAYWALL_STRIPE_PRICE_ID_BUNDLE_USD": "price_bundle_usd",
    "PAYWALL_STRIPE_PRICE_ID_BUNDLE_EUR": "",
    "PAYWALL_LOOPS_API_KEY": "",
    "PAYWALL_LOG_LEVEL": "WARNING",
}


class FakeIdentityProvider:
    """Resolves a fixed set of tokens."""

    def __init__(self, users: dict[str, AuthenticatedUser]):
        self.users = users

    async def get_user(self, token: str) -> AuthenticatedUser:
        user = self.users.get(token)
        if user is None:
            raise UnauthenticatedError()
        return user


class FakePaymentProvider:
    """Records checkout sessions instead of calling Stripe."""

    def __init__(self):
        self.calls: list[dict] = []

    async def create_session(self, **kwargs) -> ProviderSession:
        self.calls.append(kwargs)
        session_id = f"cs_test_{len(self.calls)}"
        return ProviderSession(
            session_id=session_id,
            redirect_url=f"https://checkout.stripe.com/c/pay/{session_id}",
        )


def sign_stripe_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    ts = str(int(time.time()) if timestamp is None else timestamp)
    sig = hmac.new(secret.encode(), f"{ts}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def _configure(monkeypatch, **overrides):
    env = {**BASE_ENV, **overrides}
    for key, value in env.items():
        monkeypatch.setenv(key, value)

    # Clear caches and singletons so new env vars take effect
    from playbook_paywall.common.config import get_settings
    get_settings.cache_clear()

    from playbook_paywall.deps import reset_singletons
    reset_singletons()


@pytest.fixture
def payment_provider():
    return FakePaymentProvider()


@pytest.fixture
def env_overrides():
    """Override per test module/class to tweak the app's environment."""
    return {}


@pytest.fixture
def app(monkeypatch, payment_provider, env_overrides):
    """Create a test app with in-memory DB and fake collaborators."""
    _configure(monkeypatch, **env_overrides)

    from playbook_paywall.app import create_app
    from playbook_paywall.checkout.service import CheckoutService
    from playbook_paywall.common.config import get_settings
    from playbook_paywall.deps import get_checkout_service, get_identity_provider

    application = create_app()
    identity = FakeIdentityProvider(USERS_BY_TOKEN)
    checkout = CheckoutService(get_settings(), payment_provider)
    application.dependency_overrides[get_identity_provider] = lambda: identity
    application.dependency_overrides[get_checkout_service] = lambda: checkout
    return application


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from playbook_paywall.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()

    from playbook_paywall.common.config import get_settings
    get_settings.cache_clear()


@pytest.fixture
def alice_headers():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob_headers():
    return {"Authorization": "Bearer token-bob"}
