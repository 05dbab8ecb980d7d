"""DONQ — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Extra Life API ──
    team_id: str = "67141"
    extra_life_base_url: str = "https://www.extra-life.org/api"
    fetch_timeout_seconds: float = 10.0

    # ── Database ──
    database_url: str = ""

    # ── App ──
    log_level: str = "INFO"
    poll_enabled: bool = True
    poll_interval_seconds: int = 30

    # ── Export ──
    export_settings_path: str = "./settings.json"
    default_export_path: str = "./exports"
    default_export_name: str = "donations"
    default_export_format: str = "csv"  # csv | spreadsheet

    # ── Moderation ──
    test_id_prefix: str = "TEST"
    display_webhook_url: Optional[str] = None

    @property
    def effective_database_url(self) -> str:
        """Return the configured URL, otherwise fall back to local SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/donations.db"
        return "sqlite:///./donations.db"

    model_config = {
        "env_prefix": "DONQ_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
