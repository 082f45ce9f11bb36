"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings

from asvs_mcp.models.enums import SecurityTier

_MB = 1024 * 1024


class SecurityLimits(BaseModel):
    """Input and memory bounds for one security tier."""
    max_file_size: int
    max_query_length: int
    max_category_length: int
    max_id_length: int
    max_tokenize_length: int
    max_cache_entries: int  # distinct search-index tokens


SECURITY_TIERS: dict[SecurityTier, SecurityLimits] = {
    SecurityTier.CONSERVATIVE: SecurityLimits(
        max_file_size=10 * _MB,
        max_query_length=1000,
        max_category_length=200,
        max_id_length=50,
        max_tokenize_length=10_000,
        max_cache_entries=5_000,
    ),
    SecurityTier.BALANCED: SecurityLimits(
        max_file_size=25 * _MB,
        max_query_length=2000,
        max_category_length=500,
        max_id_length=100,
        max_tokenize_length=20_000,
        max_cache_entries=10_000,
    ),
    SecurityTier.GENEROUS: SecurityLimits(
        max_file_size=50 * _MB,
        max_query_length=5000,
        max_category_length=1000,
        max_id_length=200,
        max_tokenize_length=50_000,
        max_cache_entries=20_000,
    ),
}


class Settings(BaseSettings):
    """Application settings loaded from ASVS_* environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "owasp-asvs-server"
    app_version: str = "1.0.0"
    asvs_version: str = "5.0.0"

    # ── Security tier ────────────────────────────────────
    security_tier: SecurityTier = SecurityTier.BALANCED

    # ── Rate limiting ────────────────────────────────────
    rate_limit: bool = True
    rate_limit_requests: int = 100
    rate_limit_window_ms: int = 60_000

    # ── Dataset ──────────────────────────────────────────
    data_dir: str = "data"  # relative to the working directory
    data_hash: str = ""  # SHA-256 of the main ASVS document; empty = skip check

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"
    log_file: str = "asvs-server.log"  # empty = stderr only

    model_config = {
        "env_prefix": "ASVS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("security_tier", mode="before")
    @classmethod
    def _fallback_to_balanced(cls, value):
        if isinstance(value, SecurityTier):
            return value
        try:
            return SecurityTier(str(value).upper())
        except ValueError:
            return SecurityTier.BALANCED

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return str(value).upper()

    @property
    def limits(self) -> SecurityLimits:
        return SECURITY_TIERS[self.security_tier]

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
