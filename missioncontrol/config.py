"""Mission Control configuration loaded from environment variables."""

from __future__ import annotations

import json
from pydantic_settings import BaseSettings
from pydantic import Field, AliasChoices


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # Database (local/dev store when Supabase is not configured)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./missioncontrol.db",
        alias="DATABASE_URL",
    )
    auto_create_schema: bool = Field(default=True, alias="AUTO_CREATE_SCHEMA")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    cors_origins: str = Field(default='["http://localhost:5173"]', alias="CORS_ORIGINS")
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Supabase (REST record store)
    supabase_url: str = Field(default="", alias="SUPABASE_URL")
    supabase_anon_key: str = Field(default="", alias="SUPABASE_ANON_KEY")
    supabase_service_role_key: str = Field(default="", alias="SUPABASE_SERVICE_ROLE_KEY")
    store_timeout_seconds: float = Field(default=20.0, alias="STORE_TIMEOUT_SECONDS")

    # Demo rows for an empty local database
    enable_demo_data: bool = Field(default=True, alias="ENABLE_DEMO_DATA")

    # Refresh
    refresh_interval_seconds: int = Field(
        default=300,
        validation_alias=AliasChoices("REFRESH_INTERVAL_SECONDS", "REFRESH_INTERVAL"),
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in {"production", "prod"}

    @property
    def supabase_key(self) -> str:
        # Service role key wins: marking a risk resolved needs write access.
        return self.supabase_service_role_key or self.supabase_anon_key

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def cors_origins_list(self) -> list[str]:
        raw = (self.cors_origins or "").strip()
        if not raw:
            return []

        # Supports JSON list format and comma-separated format.
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
                if isinstance(parsed, list):
                    return [str(origin).strip() for origin in parsed if str(origin).strip()]
            except json.JSONDecodeError:
                pass

        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
