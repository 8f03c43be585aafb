"""
Configuration and settings for the phone identity backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.errors import ConfigurationError


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Supabase (PostgREST)
    supabase_url: Optional[str] = Field(default=None)
    supabase_service_role_key: Optional[str] = Field(default=None)
    supabase_timeout_seconds: Optional[float] = Field(default=None, gt=0)
    user_phones_table: str = Field(default="user_phones")
    industries_table: str = Field(default="industries")

    # Identity / quota
    default_dosage: int = Field(default=10, ge=0)
    quota_timezone: str = Field(default="Asia/Shanghai")
    uid_strategy: Literal["timestamp", "uuid"] = Field(default="timestamp")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    enable_debug_routes: bool = Field(default=False)

    log_level: str = Field(default="INFO")


@dataclass(frozen=True)
class SupabaseConfig:
    """Validated connection details handed to REST-backed stores."""

    base_url: str
    service_key: str
    timeout: Optional[float] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseConfig":
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ConfigurationError()
        return cls(
            base_url=settings.supabase_url.rstrip("/"),
            service_key=settings.supabase_service_role_key,
            timeout=settings.supabase_timeout_seconds,
        )

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
