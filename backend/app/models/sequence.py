"""Per-tenant monotonic counters backing document numbers."""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import TimestampMixin


class SequenceKind(str, enum.Enum):
    """Document families numbered independently."""

    TRANSACTION = "transaction"
    INVOICE = "invoice"


class TenantSequence(TimestampMixin, Base):
    """Last value handed out for a tenant/kind pair."""

    __tablename__ = "tenant_sequences"
    __table_args__ = (
        UniqueConstraint("tenant_id", "kind", name="uq_tenant_sequence_kind"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[SequenceKind] = mapped_column(Enum(SequenceKind), nullable=False)
    last_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
