"""Playbook Paywall configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_PRODUCTION_REQUIRED = (
    "stripe_secret_key",
    "stripe_webhook_secret",
    "supabase_url",
    "supabase_anon_key",
)


class PaywallSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PAYWALL_")

    environment: str = "development"
    # Hosting platform's own environment marker (Vercel-style "production" / "preview").
    vercel_env: str = ""
    premium_test_mode: bool = False

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/paywall.db"

    # API
    api_title: str = "Playbook Paywall"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # Sites allowed as checkout redirect bases
    site_url: str = "https://www.fluttertonative.pro"
    ios_site_url: str = ""
    android_site_url: str = ""

    # Supabase Auth
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_webhook_tolerance: int = 300  # seconds
    stripe_price_id_ios_usd: str = ""
    stripe_price_id_ios_eur: str = ""
    stripe_price_id_android_usd: str = ""
    stripe_price_id_android_eur: str = ""
    stripe_price_id_bundle_usd: str = ""
    stripe_price_id_bundle_eur: str = ""

    # Lead forwarding (Loops)
    loops_api_key: str = ""

    # Outbound call limits
    http_timeout_seconds: float = 10.0
    payment_timeout_seconds: float = 20.0
    grant_max_attempts: int = 5
    # Bounds each profile-store statement and the wait for a pooled connection.
    db_timeout_seconds: float = 5.0

    @property
    def is_production(self) -> bool:
        return (
            self.environment.lower() == "production"
            or self.vercel_env.lower() == "production"
        )

    @property
    def debug_grants_enabled(self) -> bool:
        """Direct grants are allowed only in test mode outside production."""
        return self.premium_test_mode and not self.is_production

    @property
    def allowed_origins(self) -> set[str]:
        return {
            url.rstrip("/")
            for url in (self.site_url, self.ios_site_url, self.android_site_url)
            if url
        }

    @property
    def price_handles(self) -> dict[tuple[str, str], str]:
        """Return configured Stripe price IDs keyed by (product_id, currency)."""
        return {
            ("ios_playbook", "USD"): self.stripe_price_id_ios_usd.strip(),
            ("ios_playbook", "EUR"): self.stripe_price_id_ios_eur.strip(),
            ("android_playbook", "USD"): self.stripe_price_id_android_usd.strip(),
            ("android_playbook", "EUR"): self.stripe_price_id_android_eur.strip(),
            ("bundle_playbook", "USD"): self.stripe_price_id_bundle_usd.strip(),
            ("bundle_playbook", "EUR"): self.stripe_price_id_bundle_eur.strip(),
        }

    def validate_for_production(self) -> None:
        """Raise if a production deployment is missing required secrets."""
        if not self.is_production:
            return

        missing = [field for field in _PRODUCTION_REQUIRED if not getattr(self, field)]
        if missing:
            env_vars = ", ".join(f"PAYWALL_{f.upper()}" for f in missing)
            raise RuntimeError(
                f"Missing configuration in '{self.environment}' environment. "
                f"Set these environment variables: {env_vars}."
            )

        unpriced = [
            f"{product}/{currency}"
            for (product, currency), price_id in self.price_handles.items()
            if not price_id
        ]
        if unpriced:
            warnings.warn(
                f"No Stripe price configured for: {', '.join(unpriced)}; "
                "checkout for these will fail",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> PaywallSettings:
    settings = PaywallSettings()
    settings.validate_for_production()
    return settings
