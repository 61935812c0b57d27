"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App
    app_name: str = "PushGW"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    port: int = 4000
    allowed_origins: str = "*"

    # Registry
    default_platform: str = "android"

    # Dispatch
    default_android_priority: Literal["high", "normal"] = "high"

    # Firebase Cloud Messaging
    fcm_credentials_json: str = ""  # Path to Firebase service account JSON; empty = application default
    fcm_project_id: str = ""

    @field_validator("default_platform")
    @classmethod
    def platform_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("default_platform must not be blank")
        return v

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def default_provider_options(self) -> dict[str, str]:
        return {"priority": self.default_android_priority}


@lru_cache
def get_settings() -> Settings:
    return Settings()
