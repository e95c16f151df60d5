"""Invoice branding settings per tenant."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.tenant import Tenant


class InvoiceBranding(TimestampMixin, Base):
    """Header/footer text and payment instructions printed on invoices."""

    __tablename__ = "invoice_branding"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    logo_url: Mapped[str | None] = mapped_column(String(500))
    header_text: Mapped[str | None] = mapped_column(Text())
    footer_text: Mapped[str | None] = mapped_column(Text())
    show_business_name: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    payment_grace_days: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    merchant_account_name: Mapped[str | None] = mapped_column(String(255))
    merchant_account_number: Mapped[str | None] = mapped_column(String(64))

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="branding")
