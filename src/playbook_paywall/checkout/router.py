"""Checkout and catalog endpoints."""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException

from playbook_paywall.catalog.products import PRODUCTS, format_price
from playbook_paywall.checkout.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PriceResponse,
    ProductResponse,
)
from playbook_paywall.common.exceptions import (
    ConfigurationError,
    InvalidRequestError,
    PaymentProviderError,
    ProductNotFoundError,
    UnauthenticatedError,
)
from playbook_paywall.common.security import require_user
from playbook_paywall.deps import get_checkout_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/products", response_model=list[ProductResponse])
async def list_products():
    return [
        ProductResponse(
            id=p.id.value,
            name=p.name,
            description=p.description,
            entitlements=sorted(p.entitlements),
            prices=[
                PriceResponse(
                    currency=cur.value,
                    amount=amount,
                    display=format_price(amount, cur.value),
                )
                for cur, amount in p.amounts.items()
            ],
        )
        for p in PRODUCTS.values()
    ]


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout_session(
    body: CheckoutRequest,
    user=Depends(require_user),
    origin: str | None = Header(None),
    svc=Depends(get_checkout_service),
):
    """Create a Stripe Checkout session and return its redirect URL."""
    try:
        session = await svc.create_checkout_session(
            user, body.product_id, body.currency, origin=origin,
        )
    except UnauthenticatedError:
        raise HTTPException(status_code=401, detail="Unauthorized")
    except ProductNotFoundError:
        raise HTTPException(status_code=400, detail="Invalid product ID")
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ConfigurationError as e:
        logger.error("Checkout configuration error: %s", e.message)
        raise HTTPException(status_code=500, detail="Price configuration error")
    except PaymentProviderError as e:
        raise HTTPException(status_code=502, detail=e.message)

    return CheckoutResponse(url=session.redirect_url)
