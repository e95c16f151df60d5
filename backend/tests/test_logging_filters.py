"""Tests for log redaction."""

from __future__ import annotations

import logging

from app.security.logging_filters import REDACTED, SensitiveFilter, redact


def test_redact_masks_bearer_tokens_and_account_numbers() -> None:
    text = (
        'Authorization: Bearer abc.def-ghi {"merchant_account_number": "1234567890"}'
    )

    scrubbed = redact(text)

    assert "abc.def-ghi" not in scrubbed
    assert "1234567890" not in scrubbed
    assert scrubbed.count(REDACTED) == 2


def test_filter_scrubs_message_arguments() -> None:
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="request carried %s for %s",
        args=("Bearer secret-token", "INV-202603-00001"),
        exc_info=None,
    )

    assert SensitiveFilter().filter(record) is True
    assert record.getMessage() == f"request carried {REDACTED} for INV-202603-00001"
