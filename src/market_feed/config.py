from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MARKET_FEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    service_name: str = "market-feed"
    service_port: int = 8085
    feed_url: str = "ws://localhost:8080/ws"
    reconnect_delay_seconds: float = Field(3.0, gt=0)
    rate_interval_seconds: float = Field(1.0, gt=0)
    connect_timeout_seconds: float = 10.0
    max_frame_bytes: int | None = 1_048_576
    snapshot_push_enabled: bool = True

    log_level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    log_dir: str | None = "logs"

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://localhost:3000",
        ]
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
