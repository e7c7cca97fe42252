"""
Supabase client initialization.

This module contains *only* the database connection setup. Repository modules
call `get_supabase()` for the shared client and run queries through `execute()`
so every persistence failure surfaces as a StoreError.

The client is created on first use, so importing repositories never requires
credentials (tests replace the repository functions instead).

Environment variables required (see core.config):
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client  # type: ignore[import-not-found]

from core.config import get_settings
from domain.errors import StoreError

logger = logging.getLogger(__name__)

_client: Optional[Client] = None


def get_supabase() -> Client:
    """Return the shared Supabase client, creating it on first call."""

    global _client
    if _client is not None:
        return _client

    settings = get_settings()
    if not settings.supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )
    if not settings.supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    _client = create_client(settings.supabase_url, settings.supabase_key)
    return _client


def execute(query: Any, action: str) -> Any:
    """
    Execute a PostgREST query, converting failures into StoreError.

    Args:
        query: A built supabase query (anything with .execute())
        action: Short description used in the error message, e.g. "create sale"

    Returns:
        The response object (use `.data`, and `.count` when requested)
    """

    try:
        response = query.execute()
    except APIError as e:
        logger.error("Supabase rejected query", extra={"action": action, "error": str(e)})
        raise StoreError(f"Failed to {action}: {e}") from e
    except httpx.HTTPError as e:
        logger.error("Supabase unreachable", extra={"action": action, "error": str(e)})
        raise StoreError(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        raise StoreError(f"Failed to {action}: {error}")
    return response


__all__ = ["get_supabase", "execute"]
