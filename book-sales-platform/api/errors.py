"""
Error responses shared by the routers.

Internal failures are logged with their traceback but only described
generically to clients, unless the app runs in development mode.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status

from core.config import get_settings

logger = logging.getLogger(__name__)


def internal_error(message: str, exc: Exception) -> HTTPException:
    """
    Build the 500 response for an unexpected failure.

    Call from inside the `except` block so the traceback is logged.
    """
    logger.exception(message, extra={"error_type": type(exc).__name__})
    detail = f"{message}: {exc}" if get_settings().debug else message
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def parse_uuid(value: Optional[str], name: str) -> UUID:
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid UUID format for {name}",
        )
