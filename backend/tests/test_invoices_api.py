"""API tests for invoice composition and lifecycle."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _settle(
    client: AsyncClient, headers: dict[str, str], customer_id: str, paid: str
) -> str:
    response = await client.post(
        "/api/v1/sales/transactions",
        json={
            "source_type": "on_the_spot",
            "customer_id": customer_id,
            "line_items": [
                {"quantity": 1, "unit_price": "80000", "service_name": "Hair spa"}
            ],
            "payments": [{"method": "cash", "amount": paid}],
        },
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["id"]


async def test_compose_is_idempotent(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = app_context["headers"]
    transaction_id = await _settle(
        client, headers, str(app_context["customer_id"]), "80000"
    )

    first = await client.post(
        "/api/v1/invoices/from-transaction",
        json={"transaction_id": transaction_id, "issue_date": "2026-03-05"},
        headers=headers,
    )
    assert first.status_code == 201
    invoice = first.json()
    assert invoice["invoice_number"] == "INV-202603-00001"
    assert invoice["status"] == "paid"
    assert invoice["paid_date"] == "2026-03-05"
    assert invoice["total_amount"] == "80000"
    assert invoice["customer_name"] == "Dewi Lestari"

    second = await client.post(
        "/api/v1/invoices/from-transaction",
        json={"transaction_id": transaction_id},
        headers=headers,
    )
    assert second.status_code == 200
    assert second.json()["id"] == invoice["id"]
    assert second.json()["invoice_number"] == invoice["invoice_number"]

    listing = await client.get("/api/v1/invoices", headers=headers)
    assert [item["id"] for item in listing.json()] == [invoice["id"]]


async def test_send_then_pay(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = app_context["headers"]
    transaction_id = await _settle(
        client, headers, str(app_context["customer_id"]), "30000"
    )

    composed = await client.post(
        "/api/v1/invoices/from-transaction",
        json={"transaction_id": transaction_id, "issue_date": "2026-03-05"},
        headers=headers,
    )
    assert composed.status_code == 201
    invoice_id = composed.json()["id"]
    assert composed.json()["status"] == "draft"
    assert composed.json()["remaining_balance"] == "50000"

    sent = await client.post(f"/api/v1/invoices/{invoice_id}/send", headers=headers)
    assert sent.status_code == 200
    assert sent.json()["status"] == "sent"

    resent = await client.post(f"/api/v1/invoices/{invoice_id}/send", headers=headers)
    assert resent.status_code == 400
    assert resent.json()["detail"]["code"] == "invalid_transition"

    paid = await client.post(
        f"/api/v1/invoices/{invoice_id}/pay",
        json={"paid_date": "2026-03-10"},
        headers=headers,
    )
    assert paid.status_code == 200
    body = paid.json()
    assert body["status"] == "paid"
    assert body["paid_date"] == "2026-03-10"
    assert body["remaining_balance"] == "0"

    fetched = await client.get(f"/api/v1/invoices/{invoice_id}", headers=headers)
    assert fetched.json()["status"] == "paid"


async def test_compose_for_unknown_transaction_is_404(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.post(
        "/api/v1/invoices/from-transaction",
        json={"transaction_id": "00000000-0000-0000-0000-000000000000"},
        headers=app_context["headers"],
    )

    assert response.status_code == 404
