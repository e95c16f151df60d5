"""Tenant model representing one business on the platform."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from app.models.branding import InvoiceBranding
    from app.models.customer import Customer
    from app.models.pricing import PricingSettings


class Tenant(TimestampMixin, Base):
    """A tenant business (e.g., a salon or spa)."""

    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    customers: Mapped[list["Customer"]] = relationship(
        "Customer", back_populates="tenant", cascade="all, delete-orphan"
    )
    pricing_settings: Mapped["PricingSettings | None"] = relationship(
        "PricingSettings",
        back_populates="tenant",
        cascade="all, delete-orphan",
        uselist=False,
    )
    branding: Mapped["InvoiceBranding | None"] = relationship(
        "InvoiceBranding",
        back_populates="tenant",
        cascade="all, delete-orphan",
        uselist=False,
    )
