"""Profile read endpoint: the page layer's access check."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, Request

from playbook_paywall.common.security import require_user
from playbook_paywall.deps import get_profile_store
from playbook_paywall.entitlements.resolver import evaluate_access, resolve_platform_context
from playbook_paywall.profiles.schemas import AccessResponse

router = APIRouter(prefix="/me", tags=["profiles"])


def _get_db():
    from playbook_paywall.deps import get_db
    return get_db()


def _request_host(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-host")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    return request.headers.get("host")


@router.get("/access", response_model=AccessResponse)
async def get_access(
    request: Request,
    path: str | None = Query(None, description="Page path being gated"),
    user=Depends(require_user),
    store=Depends(get_profile_store),
):
    """Evaluate premium access for the caller on the requesting site/page."""
    platform = resolve_platform_context(_request_host(request), path)

    db = _get_db()
    async with db.get_session() as session:
        profile = await store.read(session, user.user_id)

    entitlements = profile.entitlements if profile else frozenset()
    decision = evaluate_access(entitlements, platform)
    return AccessResponse(
        user_id=user.user_id,
        email=(profile.email if profile and profile.email else user.email),
        entitlements=sorted(entitlements),
        **asdict(decision),
    )
