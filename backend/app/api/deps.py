"""Common API dependencies."""

from __future__ import annotations

import uuid
from typing import Annotated
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.db.session import get_session
from app.models.tenant import Tenant

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_current_tenant_id(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> uuid.UUID:
    """Resolve the tenant from the bearer token's ``tenant_id`` claim."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as exc:
        raise credentials_exception from exc

    try:
        tenant_id = uuid.UUID(str(payload.get("tenant_id")))
    except (ValueError, TypeError) as exc:
        raise credentials_exception from exc

    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        raise credentials_exception
    return tenant_id

