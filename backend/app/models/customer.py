"""Customer model (owned by the CRM side; read here for snapshots)."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TenantScopedMixin, TimestampMixin

if TYPE_CHECKING:
    from app.models.tenant import Tenant


class Customer(TenantScopedMixin, TimestampMixin, Base):
    """A tenant's customer."""

    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(String(500))

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="customers")
