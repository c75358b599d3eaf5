"""Pydantic schemas for checkout and catalog endpoints."""

from pydantic import BaseModel


class CheckoutRequest(BaseModel):
    product_id: str = "ios_playbook"
    currency: str = "USD"


class CheckoutResponse(BaseModel):
    url: str


class PriceResponse(BaseModel):
    currency: str
    amount: int
    display: str


class ProductResponse(BaseModel):
    id: str
    name: str
    description: str
    entitlements: list[str]
    prices: list[PriceResponse]
