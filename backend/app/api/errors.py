"""Translate engine errors into HTTP responses."""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException, status

from app.core.errors import (
    ConcurrencyError,
    DuplicateInvoiceError,
    NotFoundError,
    SettlementError,
)

_STATUS_BY_ERROR: tuple[tuple[type[SettlementError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateInvoiceError, status.HTTP_409_CONFLICT),
    (ConcurrencyError, status.HTTP_409_CONFLICT),
)


def raise_http_error(error: SettlementError) -> NoReturn:
    """Raise ``HTTPException`` carrying the structured error detail."""

    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped_status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code = mapped_status
            break
    raise HTTPException(status_code=status_code, detail=error.to_detail()) from error
