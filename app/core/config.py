from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Zoomies API"
    environment: str = "local"
    api_prefix: str = "/api"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    data_store_url: str = Field(default="http://localhost:54321", alias="SUPABASE_URL")
    data_store_key: str = Field(default="change_me", alias="SUPABASE_ANON_KEY")
    http_timeout_seconds: float = 10.0

    auth_jwt_secret: str = Field(default="change_me", alias="SUPABASE_JWT_SECRET")
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    write_rate_limit: int = 30
    write_rate_window_seconds: int = 60

    default_donation_amount: Decimal = Decimal("100")
    default_tip_amount: Decimal = Decimal("10")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
