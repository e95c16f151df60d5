"""Per-tenant document numbering backed by monotonic counters."""

from __future__ import annotations

import logging
import uuid
from datetime import date

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import ConcurrencyError
from app.models import SequenceKind, TenantSequence

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 5


def format_transaction_number(issued_on: date, value: int) -> str:
    """Render ``SALE-YYYYMMDD-NNNNN``."""

    prefix = get_settings().transaction_number_prefix
    return f"{prefix}-{issued_on:%Y%m%d}-{value:0{SEQUENCE_WIDTH}d}"


def format_invoice_number(issued_on: date, value: int) -> str:
    """Render ``INV-YYYYMM-NNNNN``."""

    prefix = get_settings().invoice_number_prefix
    return f"{prefix}-{issued_on:%Y%m}-{value:0{SEQUENCE_WIDTH}d}"


async def next_sequence_value(
    session: AsyncSession, *, tenant_id: uuid.UUID, kind: SequenceKind
) -> int:
    """Atomically increment and return the tenant's counter for ``kind``.

    Runs inside the caller's transaction so the counter row stays locked until
    the document using the number is committed or rolled back.
    """

    stmt = (
        update(TenantSequence)
        .where(TenantSequence.tenant_id == tenant_id, TenantSequence.kind == kind)
        .values(last_value=TenantSequence.last_value + 1)
        .returning(TenantSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    value = (await session.execute(stmt)).scalar_one_or_none()
    if value is not None:
        return int(value)

    session.add(TenantSequence(tenant_id=tenant_id, kind=kind, last_value=1))
    try:
        await session.flush()
    except IntegrityError as exc:
        logger.warning(
            "Sequence row for tenant %s (%s) created concurrently",
            tenant_id,
            kind.value,
        )
        raise ConcurrencyError(
            f"{kind.value} number assignment collided; retry the request",
            field="number",
        ) from exc
    return 1
