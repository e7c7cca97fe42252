"""
Application settings.

Values come from environment variables. A `.env` file in the application
directory is loaded first (existing environment variables win).

Environment variables:
- SUPABASE_URL / SUPABASE_KEY: Supabase project URL and server-side API key
- APP_ENV: "development" exposes error details in API responses (default "production")
- LOG_LEVEL: root logging level (default "INFO")
- ALLOW_ORIGINS: comma-separated CORS origins (default "*")
- MAX_UPLOAD_BYTES: largest accepted CSV upload in bytes (default 10 MiB)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path, override=False)


def _env(key: str, default: str = "") -> str:
    return (os.environ.get(key) or default).strip()


class Settings:
    """Snapshot of the environment taken when first requested."""

    def __init__(self) -> None:
        self.supabase_url: Optional[str] = _env("SUPABASE_URL") or None
        self.supabase_key: Optional[str] = _env("SUPABASE_KEY") or None
        self.app_env: str = _env("APP_ENV", "production").lower()
        self.log_level: str = _env("LOG_LEVEL", "INFO").upper()
        self.allow_origins: List[str] = [
            origin.strip() for origin in _env("ALLOW_ORIGINS", "*").split(",") if origin.strip()
        ]
        self.max_upload_bytes: int = int(_env("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    @property
    def debug(self) -> bool:
        """Error details are only exposed to clients in development."""
        return self.app_env == "development"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
