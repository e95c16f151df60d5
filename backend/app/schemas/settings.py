"""Invoice branding schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BrandingRead(BaseModel):
    """Branding applied to composed invoices."""

    business_name: str
    tenant_slug: str
    logo_url: str | None = None
    header_text: str | None = None
    footer_text: str | None = None
    show_business_name: bool = True
    payment_grace_days: int = 0
    merchant_account_name: str | None = None
    merchant_account_number: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BrandingUpdate(BaseModel):
    """Partial branding update."""

    logo_url: str | None = None
    header_text: str | None = None
    footer_text: str | None = None
    show_business_name: bool | None = None
    payment_grace_days: int | None = Field(default=None, ge=0)
    merchant_account_name: str | None = None
    merchant_account_number: str | None = None
