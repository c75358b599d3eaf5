"""FastAPI application factory for Playbook Paywall."""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from playbook_paywall.common.config import get_settings
from playbook_paywall.common.exceptions import (
    ConfigurationError,
    IdentityProviderError,
    InvalidRequestError,
    NotFoundError,
    PaymentProviderError,
    PaywallError,
    UnauthenticatedError,
    UnauthorizedError,
)
from playbook_paywall.common.logging import setup_logging
from playbook_paywall.common.schemas import HealthResponse

logger = logging.getLogger(__name__)

# Fallback mapping for domain errors a router does not translate itself.
# Checked in order, so subclasses must precede their bases.
_STATUS_BY_ERROR = (
    (UnauthenticatedError, 401),
    (UnauthorizedError, 404),
    (NotFoundError, 404),
    (InvalidRequestError, 400),
    (PaymentProviderError, 502),
    (IdentityProviderError, 503),
    (ConfigurationError, 500),
)


def _status_for(exc: PaywallError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def paywall_error_handler(request: Request, exc: PaywallError) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        error_id = str(uuid.uuid4())
        logger.error(
            "Unhandled paywall error",
            extra={"error_id": error_id, "code": exc.code, "path": request.url.path},
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status_code,
            content={"detail": "Internal server error", "code": exc.code, "error_id": error_id},
        )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level, settings.environment)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from playbook_paywall.deps import get_db
        db = get_db()
        await db.init()
        # Deployed databases are migrated with Alembic; this only fills gaps locally.
        await db.create_all()
        logger.info(
            "Paywall started",
            extra={
                "environment": settings.environment,
                "debug_grants": settings.debug_grants_enabled,
            },
        )
        yield
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.add_exception_handler(PaywallError, paywall_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    from playbook_paywall.checkout.router import router as checkout_router
    from playbook_paywall.fulfillment.router import router as fulfillment_router
    from playbook_paywall.leads.router import router as leads_router
    from playbook_paywall.profiles.router import router as profiles_router

    prefix = settings.api_prefix
    app.include_router(checkout_router, prefix=prefix, tags=["checkout"])
    app.include_router(fulfillment_router, prefix=prefix, tags=["fulfillment"])
    app.include_router(profiles_router, prefix=prefix)
    app.include_router(leads_router, prefix=prefix)

    return app
