"""Tenant pricing configuration: tax, service charge, travel surcharge, fees."""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from app.models.tenant import Tenant


class FeeType(str, enum.Enum):
    """How a charge value is interpreted."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"


class PricingSettings(TimestampMixin, Base):
    """One row per tenant holding the scalar pricing rules."""

    __tablename__ = "pricing_settings"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    tax_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("0"), nullable=False
    )
    service_charge_type: Mapped[FeeType] = mapped_column(
        Enum(FeeType), default=FeeType.FIXED, nullable=False
    )
    service_charge_value: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    service_charge_required: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    travel_base_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    travel_per_km_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    travel_min_distance_km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    travel_max_distance_km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    travel_surcharge_required: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="pricing_settings")
    fees: Mapped[list["AdditionalFee"]] = relationship(
        "AdditionalFee",
        back_populates="settings",
        cascade="all, delete-orphan",
        order_by="AdditionalFee.position",
    )


class AdditionalFee(TimestampMixin, Base):
    """Arbitrary named fee applied after tax and service charge."""

    __tablename__ = "additional_fees"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    settings_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pricing_settings.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    fee_type: Mapped[FeeType] = mapped_column(Enum(FeeType), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    settings: Mapped[PricingSettings] = relationship(
        "PricingSettings", back_populates="fees"
    )
