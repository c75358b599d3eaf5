"""HTTP client for resolving bearer tokens against Supabase Auth."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from playbook_paywall.common.exceptions import (
    ConfigurationError,
    IdentityProviderError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity resolved from a bearer token."""
    user_id: str
    email: Optional[str] = None


class SupabaseIdentityProvider:
    """Calls Supabase's ``GET /auth/v1/user`` with the caller's access token."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self._transport = transport

    async def get_user(self, token: str) -> AuthenticatedUser:
        """Resolve a token to a user.

        Raises UnauthenticatedError when the provider rejects the token and
        IdentityProviderError when it cannot give an answer at all.
        """
        if not token:
            raise UnauthenticatedError("Missing bearer token")
        if not self.base_url or not self.anon_key:
            raise ConfigurationError("Supabase URL / anon key not configured")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.get(
                    f"{self.base_url}/auth/v1/user",
                    headers={
                        "apikey": self.anon_key,
                        "Authorization": f"Bearer {token}",
                    },
                )
        except httpx.HTTPError as e:
            logger.warning("Identity lookup failed: %s", type(e).__name__)
            raise IdentityProviderError("Could not reach identity provider") from e

        if resp.status_code >= 500:
            logger.warning("Identity provider error: %s", resp.status_code)
            raise IdentityProviderError(f"Identity provider returned {resp.status_code}")
        if resp.status_code != 200:
            logger.info("Identity provider rejected token: %s", resp.status_code)
            raise UnauthenticatedError()

        try:
            data = resp.json()
        except ValueError as e:
            logger.warning("Identity provider returned a non-JSON body")
            raise IdentityProviderError("Malformed identity provider response") from e
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise UnauthenticatedError()
        return AuthenticatedUser(user_id=user_id, email=data.get("email"))
