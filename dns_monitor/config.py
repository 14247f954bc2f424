"""DNS Monitor: Central Configuration via Pydantic Settings."""

import os
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SNAPSHOT_BEHAVIORS = ("always", "on_change")
CHECK_FREQUENCIES = {
    "hourly": 1,
    "twicedaily": 12,
    "daily": 24,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_prefix="DNS_MONITOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Monitored Domain ──
    domain: str = ""
    record_types: str = "A"  # comma-separated, e.g. "A,AAAA,MX,TXT"
    nameservers: str = ""  # empty → system resolver
    resolver_timeout: float = 5.0

    # ── Database ──
    database_url: str = ""
    table_prefix: str = "dns_"

    # ── Snapshots ──
    retention_limit: int = 10
    snapshot_behavior: str = "always"  # always | on_change

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    check_frequency: str = "daily"  # hourly | twicedaily | daily
    check_on_startup: bool = False

    @field_validator("retention_limit")
    @classmethod
    def _retention_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retention_limit must be at least 1")
        return v

    @field_validator("snapshot_behavior")
    @classmethod
    def _known_behavior(cls, v: str) -> str:
        v = v.lower()
        if v not in SNAPSHOT_BEHAVIORS:
            raise ValueError(f"snapshot_behavior must be one of {SNAPSHOT_BEHAVIORS}")
        return v

    @field_validator("check_frequency")
    @classmethod
    def _known_frequency(cls, v: str) -> str:
        v = v.lower()
        if v not in CHECK_FREQUENCIES:
            raise ValueError(
                f"check_frequency must be one of {sorted(CHECK_FREQUENCIES)}"
            )
        return v

    @property
    def record_types_list(self) -> List[str]:
        return [t.strip().upper() for t in self.record_types.split(",") if t.strip()]

    @property
    def nameservers_list(self) -> List[str]:
        return [n.strip() for n in self.nameservers.split(",") if n.strip()]

    @property
    def check_interval_hours(self) -> int:
        return CHECK_FREQUENCIES[self.check_frequency]

    @property
    def effective_database_url(self) -> str:
        """Return the configured URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Serverless hosts have a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/dns_monitor.db"
        return "sqlite:///./dns_monitor.db"


settings = Settings()
