"""SDR Desk — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── Email (Resend) ──
    resend_api_key: Optional[str] = None
    resend_base_url: str = "https://api.resend.com"
    report_email_from: str = "SDR Desk <onboarding@resend.dev>"
    report_email_to: List[str] = []
    notifier_timeout_seconds: float = 10.0

    # ── Access ──
    admin_emails: List[str] = []

    # ── Recovery ──
    recovery_window_hours: int = 24
    recovery_schedule_enabled: bool = False
    recovery_hour: int = 3

    # ── Monitoring ──
    expected_sdrs: List[str] = []
    monitoring_window_days: int = 7
    monitoring_hour: int = 20

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/sdrdesk.db"
        return "sqlite:///./sdrdesk.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
