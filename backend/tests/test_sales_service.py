"""Tests for transaction building and persistence."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.core.errors import (
    ConcurrencyError,
    InvalidInputError,
    NotFoundError,
    PaymentValidationError,
)
from app.db.session import get_sessionmaker
from app.models import (
    Customer,
    FeeType,
    SalesSource,
    SalesTransaction,
    SalesTransactionStatus,
    Tenant,
)
from app.services import sales_service, settings_service
from app.services.payments_service import PaymentEntry
from app.services.pricing_service import LineItem, PricingRuleSet, ServiceCharge

pytestmark = pytest.mark.asyncio

SETTLED_AT = datetime(2026, 3, 5, 10, 30, tzinfo=UTC)


async def _configure_rules(session, tenant_id: uuid.UUID) -> None:
    await settings_service.update_rule_set(
        session,
        tenant_id=tenant_id,
        rule_set=PricingRuleSet(
            tax_percentage=Decimal("10"),
            service_charge=ServiceCharge(
                fee_type=FeeType.FIXED, value=Decimal("5000"), required=True
            ),
        ),
    )


def _cart_input(customer_id: uuid.UUID, *payments: tuple[str, int]):
    return sales_service.TransactionInput(
        source_type="on_the_spot",
        customer_id=customer_id,
        line_items=[
            LineItem(quantity=2, unit_price=Decimal("50000"), service_name="Facial")
        ],
        payments=[
            PaymentEntry(method=method, amount=Decimal(amount))
            for method, amount in payments
        ],
    )


async def _transaction_count(session) -> int:
    result = await session.execute(select(func.count(SalesTransaction.id)))
    return int(result.scalar_one())


async def test_settled_cart_is_completed(tenant_context, db_url: str) -> None:
    tenant_id = tenant_context["tenant_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _configure_rules(session, tenant_id)
        transaction = await sales_service.create_transaction(
            session,
            tenant_id=tenant_id,
            data=_cart_input(
                tenant_context["customer_id"], ("cash", 70000), ("qris", 45000)
            ),
            now=SETTLED_AT,
        )

    assert transaction.transaction_number == "SALE-20260305-00001"
    assert transaction.status is SalesTransactionStatus.COMPLETED
    assert transaction.source is SalesSource.ON_THE_SPOT
    assert transaction.grand_total == Decimal("115000")
    assert transaction.total_paid == Decimal("115000")
    assert transaction.remaining_balance == Decimal("0")
    assert [payment.amount for payment in transaction.payments] == [
        Decimal("70000"),
        Decimal("45000"),
    ]
    assert transaction.items[0].service_name == "Facial"
    assert transaction.pricing_snapshot["service_charge"]["required"] is True


async def test_partial_payment_is_pending_and_numbers_increase(
    tenant_context, db_url: str
) -> None:
    tenant_id = tenant_context["tenant_id"]
    customer_id = tenant_context["customer_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _configure_rules(session, tenant_id)
        first = await sales_service.create_transaction(
            session,
            tenant_id=tenant_id,
            data=_cart_input(customer_id, ("cash", 50000)),
            now=SETTLED_AT,
        )
        second = await sales_service.create_transaction(
            session,
            tenant_id=tenant_id,
            data=_cart_input(customer_id, ("card", 115000)),
            now=SETTLED_AT,
        )

    assert first.status is SalesTransactionStatus.PENDING
    assert first.remaining_balance == Decimal("65000")
    assert second.transaction_number == "SALE-20260305-00002"


async def test_rejected_payment_persists_nothing(tenant_context, db_url: str) -> None:
    tenant_id = tenant_context["tenant_id"]
    customer_id = tenant_context["customer_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _configure_rules(session, tenant_id)
        with pytest.raises(PaymentValidationError) as excinfo:
            await sales_service.create_transaction(
                session,
                tenant_id=tenant_id,
                data=_cart_input(customer_id, ("cash", 100000), ("card", 20000)),
                now=SETTLED_AT,
            )
        assert excinfo.value.code == "overpayment"
        assert await _transaction_count(session) == 0

        created = await sales_service.create_transaction(
            session,
            tenant_id=tenant_id,
            data=_cart_input(customer_id, ("cash", 115000)),
            now=SETTLED_AT,
        )
    assert created.transaction_number.endswith("-00001")


async def test_from_booking_accepts_fixed_total(tenant_context, db_url: str) -> None:
    tenant_id = tenant_context["tenant_id"]
    booking_id = uuid.uuid4()
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _configure_rules(session, tenant_id)
        transaction = await sales_service.create_transaction(
            session,
            tenant_id=tenant_id,
            data=sales_service.TransactionInput(
                source_type="from_booking",
                customer_id=tenant_context["customer_id"],
                booking_id=booking_id,
                total_amount=Decimal("200000"),
                description="Bridal makeup",
                payments=[PaymentEntry(method="transfer", amount=Decimal("200000"))],
            ),
            now=SETTLED_AT,
        )

    assert transaction.source is SalesSource.FROM_BOOKING
    assert transaction.booking_id == booking_id
    assert transaction.grand_total == Decimal("200000")
    assert transaction.tax_amount == Decimal("0")
    assert transaction.pricing_snapshot is None
    assert [item.service_name for item in transaction.items] == ["Bridal makeup"]
    assert transaction.status is SalesTransactionStatus.COMPLETED


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"source_type": "walk_in"}, "source_type"),
        ({"customer_id": None}, "customer_id"),
        ({"line_items": []}, "line_items"),
        ({"source_type": "from_booking", "booking_id": uuid.uuid4()}, "total_amount"),
        ({"source_type": "from_booking", "total_amount": Decimal("1")}, "booking_id"),
    ],
)
async def test_build_transaction_requires_fields_per_source(overrides, field: str) -> None:
    data = _cart_input(uuid.uuid4(), ("cash", 1))
    for name, value in overrides.items():
        setattr(data, name, value)

    with pytest.raises(InvalidInputError) as excinfo:
        sales_service.build_transaction(data, PricingRuleSet.empty())
    assert excinfo.value.field == field


async def test_customer_from_another_tenant_is_not_found(
    tenant_context, db_url: str
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        other = Tenant(name="Other", slug=f"other-{uuid.uuid4().hex[:8]}")
        session.add(other)
        await session.flush()
        stranger = Customer(tenant_id=other.id, name="Stranger")
        session.add(stranger)
        await session.commit()

        with pytest.raises(NotFoundError) as excinfo:
            await sales_service.create_transaction(
                session,
                tenant_id=tenant_context["tenant_id"],
                data=_cart_input(stranger.id, ("cash", 100000)),
            )
        assert excinfo.value.field == "customer_id"


async def test_number_collision_surfaces_as_concurrency_error(
    tenant_context, db_url: str
) -> None:
    tenant_id = tenant_context["tenant_id"]
    customer_id = tenant_context["customer_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        session.add(
            SalesTransaction(
                tenant_id=tenant_id,
                transaction_number="SALE-20260305-00001",
                source=SalesSource.ON_THE_SPOT,
                status=SalesTransactionStatus.COMPLETED,
                customer_id=customer_id,
                subtotal=Decimal("1"),
                tax_amount=Decimal("0"),
                service_charge_amount=Decimal("0"),
                travel_surcharge_amount=Decimal("0"),
                additional_fees_total=Decimal("0"),
                grand_total=Decimal("1"),
                fee_breakdown=[],
                total_paid=Decimal("1"),
                remaining_balance=Decimal("0"),
            )
        )
        await session.commit()

        with pytest.raises(ConcurrencyError):
            await sales_service.create_transaction(
                session,
                tenant_id=tenant_id,
                data=_cart_input(customer_id, ("cash", 100000)),
                now=SETTLED_AT,
            )
        assert await _transaction_count(session) == 1


async def test_list_and_summarize_transactions(tenant_context, db_url: str) -> None:
    tenant_id = tenant_context["tenant_id"]
    customer_id = tenant_context["customer_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _configure_rules(session, tenant_id)
        await sales_service.create_transaction(
            session,
            tenant_id=tenant_id,
            data=_cart_input(customer_id, ("cash", 70000), ("qris", 45000)),
        )
        await sales_service.create_transaction(
            session,
            tenant_id=tenant_id,
            data=_cart_input(customer_id, ("cash", 50000)),
        )

        pending = await sales_service.list_transactions(
            session, tenant_id=tenant_id, status=SalesTransactionStatus.PENDING
        )
        assert len(pending) == 1
        assert pending[0].remaining_balance == Decimal("65000")

        summary = await sales_service.sales_summary(session, tenant_id=tenant_id)

    assert summary.transaction_count == 2
    assert summary.total_revenue == Decimal("230000")
    assert summary.total_paid == Decimal("165000")
    assert summary.pending_balance == Decimal("65000")
    assert summary.average_transaction_value == Decimal("115000")
    assert summary.by_payment_method == {
        "cash": Decimal("120000"),
        "qris": Decimal("45000"),
    }
    assert summary.by_source["on_the_spot"]["count"] == 2
    assert summary.by_status == {"completed": 1, "pending": 1}
