"""API tests for pricing settings and quotes."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

RULES = {
    "tax_percentage": "10",
    "service_charge": {"fee_type": "fixed", "value": "5000", "required": True},
    "travel_surcharge": {
        "base_amount": "25000",
        "per_km_amount": "5000",
        "min_distance_km": "2",
        "max_distance_km": "50",
        "required": False,
    },
    "additional_fees": [],
}


async def test_quote_uses_saved_rules(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = app_context["headers"]

    saved = await client.put("/api/v1/settings/pricing", json=RULES, headers=headers)
    assert saved.status_code == 200
    assert saved.json()["service_charge"]["required"] is True

    stored = await client.get("/api/v1/settings/pricing", headers=headers)
    assert stored.status_code == 200
    assert stored.json()["travel_surcharge"]["required"] is False

    response = await client.post(
        "/api/v1/pricing/quote",
        json={
            "line_items": [
                {"quantity": 2, "unit_price": "50000", "service_name": "Facial"}
            ]
        },
        headers=headers,
    )

    assert response.status_code == 200
    quote = response.json()
    assert quote["subtotal"] == "100000"
    assert quote["tax_amount"] == "10000"
    assert quote["service_charge_amount"] == "5000"
    assert quote["travel_surcharge_amount"] == "0"
    assert quote["grand_total"] == "115000"


async def test_quote_rejects_zero_quantity(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.post(
        "/api/v1/pricing/quote",
        json={"line_items": [{"quantity": 0, "unit_price": "50000"}]},
        headers=app_context["headers"],
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "invalid_input"
    assert detail["field"] == "line_items[0].quantity"


async def test_quote_requires_bearer_token(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.post(
        "/api/v1/pricing/quote",
        json={"line_items": [{"quantity": 1, "unit_price": "1000"}]},
    )

    assert response.status_code == 401


async def test_branding_round_trip(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    headers = app_context["headers"]

    initial = await client.get("/api/v1/settings/branding", headers=headers)
    assert initial.status_code == 200
    assert initial.json()["business_name"] == "Glow Studio"

    updated = await client.put(
        "/api/v1/settings/branding",
        json={"footer_text": "Terima kasih", "payment_grace_days": 7},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["payment_grace_days"] == 7

    rejected = await client.put(
        "/api/v1/settings/branding",
        json={"payment_grace_days": -3},
        headers=headers,
    )
    assert rejected.status_code == 422
