"""Tests for settings parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_document_codes_are_upper_cased(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CURRENCY_CODE", " idr ")
    monkeypatch.setenv("INVOICE_NUMBER_PREFIX", "inv")

    settings = Settings()  # type: ignore[call-arg]

    assert settings.currency_code == "IDR"
    assert settings.invoice_number_prefix == "INV"


def test_prefix_with_dash_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRANSACTION_NUMBER_PREFIX", "SA-LE")

    with pytest.raises(ValidationError):
        Settings()  # type: ignore[call-arg]
