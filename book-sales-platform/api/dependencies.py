"""
Request dependencies.

Identity is established upstream (gateway / auth service), which forwards the
authenticated user's id in the X-User-Id header. Requests without a valid id
are rejected with 401 before any ledger access.
"""

from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status


def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header(alias="X-User-Id")] = None,
) -> UUID:
    """Dependency: require an authenticated user id; else 401."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return UUID(x_user_id.strip())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
