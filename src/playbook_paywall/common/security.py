"""Bearer-token authentication dependencies."""

from fastapi import Depends, Header, HTTPException

from playbook_paywall.common.exceptions import (
    ConfigurationError,
    IdentityProviderError,
    UnauthenticatedError,
)
from playbook_paywall.deps import get_identity_provider
from playbook_paywall.identity.provider import AuthenticatedUser


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return ""
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


async def require_user(
    authorization: str | None = Header(None, alias="Authorization"),
    identity=Depends(get_identity_provider),
) -> AuthenticatedUser:
    """FastAPI dependency that resolves the caller from their bearer token."""
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        return await identity.get_user(token)
    except UnauthenticatedError:
        raise HTTPException(status_code=401, detail="Unauthorized")
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=e.message)
    except IdentityProviderError:
        raise HTTPException(status_code=503, detail="Identity provider unavailable")
