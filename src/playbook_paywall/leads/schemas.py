"""Pydantic schemas for lead capture."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class LeadCreate(BaseModel):
    email: EmailStr
    source: str = Field(default="", max_length=100)
    consent_given: bool = False
    target_product: Optional[str] = None


class LeadResponse(BaseModel):
    success: bool = True
    message: str = "Lead captured successfully"
