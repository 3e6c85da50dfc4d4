"""Core configuration for the GasOpt ledger."""

from __future__ import annotations

import secrets
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GASOPT_",
        case_sensitive=False,
    )

    # ── App ──────────────────────────────────────────────────────────────
    app_name: str = "GasOpt Ledger"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    secret_key: str = Field(default_factory=lambda: secrets.token_urlsafe(64))
    cors_allowed_origins: str = "http://localhost:3000"
    jwt_access_token_expire_minutes: int = 60

    # ── API server ───────────────────────────────────────────────────────
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./gasopt.db"
    database_echo: bool = False

    # ── Fees / ownership ─────────────────────────────────────────────────
    owner_address: str = ""  # REQUIRED for admin routes — set GASOPT_OWNER_ADDRESS
    analysis_fee: int = Field(default=1_000_000_000_000_000, ge=0)  # wei (0.001 ether)

    # ── Event relay ──────────────────────────────────────────────────────
    event_webhook_urls: str = ""  # comma-separated
    event_webhook_timeout: float = 5.0

    @property
    def webhook_urls(self) -> list[str]:
        return [u.strip() for u in self.event_webhook_urls.split(",") if u.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached settings singleton."""
    return Settings()
