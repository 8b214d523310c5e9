"""
leadtrack.settings
==================

Configuration settings for the leadtrack application.

Module‑level constants hold the defaults used across the package; each can
be overridden through an environment variable.  The pydantic ``Settings``
model groups the values needed to talk to the backend and is also read from
a ``.env`` file when present.
"""

from __future__ import annotations

import os

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

# Backend (REST collaborator) settings
# ---------------------------------------------------------------------------
API_BASE_URL = os.environ.get("LEADTRACK_API_BASE_URL", "http://localhost:8081/api")
API_TIMEOUT = float(os.environ.get("LEADTRACK_API_TIMEOUT", "30"))
API_USER_AGENT = os.environ.get("LEADTRACK_API_USER_AGENT", "leadtrack/0.1.0")

# HTTP layer settings
# ---------------------------------------------------------------------------
HTTP_HOST = os.environ.get("LEADTRACK_HTTP_HOST", "127.0.0.1")
HTTP_PORT = int(os.environ.get("LEADTRACK_HTTP_PORT", "8000"))
HTTP_DEBUG = os.environ.get("LEADTRACK_HTTP_DEBUG", "False").lower() == "true"

# Reminder settings
# ---------------------------------------------------------------------------
REMINDER_WINDOW_DAYS = int(os.environ.get("LEADTRACK_REMINDER_WINDOW_DAYS", "5"))

# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = os.environ.get("LEADTRACK_LOG_LEVEL", "INFO").upper()


# ---------------------------------------------------------------------------
# Pydantic settings model for the backend connection
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Pydantic model for application settings, loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LEADTRACK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    api_base_url: HttpUrl = Field(default=API_BASE_URL, description="Base URL of the CRM backend")
    api_timeout: float = Field(default=API_TIMEOUT, description="Per-request timeout in seconds")
    api_user_agent: str = Field(default=API_USER_AGENT, description="User-Agent sent to the backend")
    reminder_window_days: int = Field(
        default=REMINDER_WINDOW_DAYS, ge=0,
        description="Meetings this many days ahead (or fewer) produce a reminder",
    )
    log_level: str = Field(default=LOG_LEVEL, description="Root logging level")
    allowed_origins: list[str] = Field(
        default=[
            "http://localhost:5173",    # Vite dev server default port
            "http://127.0.0.1:5173",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Browser origins allowed to call the HTTP layer",
    )


# Initialize settings
settings = Settings()
