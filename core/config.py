"""
Pydantic-based configuration for the scan API and CLI.

All knobs are exposed via environment variables (or a local .env file) so
the same codebase can be tuned per deployment without code changes. The
safety limits themselves (allowed ports, port count, timeout floor) are
constants in the modules that enforce them, not settings.
"""

import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, env_file=".env", extra="ignore")

    # Probing
    probe_timeout_ms: int = Field(1000, ge=1, description="per-port connect timeout, floored at 1000")
    probe_concurrency: int = Field(4, ge=1, le=20, description="parallel probes per scan")
    dns_timeout_s: float = Field(5.0, gt=0)

    # Rate limiting
    rate_limit_window_s: float = Field(10.0, gt=0)
    rate_limit_ttl_s: float = Field(60.0, gt=0)

    # HTTP surface
    api_host: str = "0.0.0.0"
    api_port: int = Field(3001, ge=1, le=65535)
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    trust_forwarded_for: bool = False

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {v}")
        return level

    @model_validator(mode="after")
    def ttl_covers_window(self) -> "Settings":
        if self.rate_limit_ttl_s < self.rate_limit_window_s:
            raise ValueError("rate_limit_ttl_s must not be shorter than rate_limit_window_s")
        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
