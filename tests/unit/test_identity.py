"""Tests for bearer-token resolution against Supabase Auth."""

import httpx
import pytest

from playbook_paywall.common.exceptions import (
    ConfigurationError,
    IdentityProviderError,
    UnauthenticatedError,
)
from playbook_paywall.common.security import bearer_token
from playbook_paywall.identity.provider import SupabaseIdentityProvider


def make_provider(handler, **kwargs):
    return SupabaseIdentityProvider(
        base_url=kwargs.get("base_url", "https://project.supabase.co/"),
        anon_key=kwargs.get("anon_key", "anon-key"),
        transport=httpx.MockTransport(handler),
    )


class TestSupabaseIdentityProvider:
    async def test_resolves_user(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["apikey"] = request.headers.get("apikey")
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"id": "user-1", "email": "u1@example.com"})

        user = await make_provider(handler).get_user("tok-1")
        assert user.user_id == "user-1"
        assert user.email == "u1@example.com"
        assert seen["url"] == "https://project.supabase.co/auth/v1/user"
        assert seen["apikey"] == "anon-key"
        assert seen["auth"] == "Bearer tok-1"

    async def test_rejected_token(self):
        provider = make_provider(lambda request: httpx.Response(401, json={"msg": "bad jwt"}))
        with pytest.raises(UnauthenticatedError):
            await provider.get_user("expired")

    async def test_response_without_id(self):
        provider = make_provider(lambda request: httpx.Response(200, json={"email": "x@y.z"}))
        with pytest.raises(UnauthenticatedError):
            await provider.get_user("tok")

    @pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout])
    async def test_outage_is_not_a_bad_token(self, error):
        def handler(request):
            raise error("unavailable", request=request)

        with pytest.raises(IdentityProviderError):
            await make_provider(handler).get_user("valid-token")

    async def test_server_error_is_provider_error(self):
        provider = make_provider(lambda request: httpx.Response(503, text="upstream down"))
        with pytest.raises(IdentityProviderError):
            await provider.get_user("valid-token")

    async def test_non_json_body_is_provider_error(self):
        provider = make_provider(
            lambda request: httpx.Response(200, text="<html>gateway</html>")
        )
        with pytest.raises(IdentityProviderError):
            await provider.get_user("valid-token")

    async def test_empty_token(self):
        calls = []
        provider = make_provider(lambda request: calls.append(request) or httpx.Response(200))
        with pytest.raises(UnauthenticatedError):
            await provider.get_user("")
        assert calls == []

    async def test_not_configured(self):
        provider = make_provider(lambda request: httpx.Response(200), anon_key="")
        with pytest.raises(ConfigurationError):
            await provider.get_user("tok")


class TestBearerToken:
    def test_extracts_token(self):
        assert bearer_token("Bearer abc.def") == "abc.def"

    def test_scheme_is_case_insensitive(self):
        assert bearer_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Basic abc", "Bearer "])
    def test_missing_or_malformed(self, header):
        assert not bearer_token(header)
