"""Application configuration for the signaling broker."""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

CsvList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")
    cors_allow_origins: CsvList = Field(default_factory=lambda: ["*"])

    token_secret: str = Field(default="dev-token-secret-change-me-before-deploying")
    token_ttl_seconds: int = Field(default=3600, ge=1)

    short_link_ttl_seconds: int = Field(default=600, ge=1)
    short_link_code_length: int = Field(default=6, ge=4, le=32)
    short_link_sweep_interval_seconds: float = Field(default=30.0, gt=0)

    public_base_url: str = Field(default="http://localhost:8000")
    client_page_url: str = Field(default="/")

    operator_password: str = Field(default="dev-password-change-me")
    session_secret: str = Field(default="dev-session-secret-change-me-before-deploying")
    session_cookie_name: str = Field(default="broker_session")
    session_ttl_seconds: int = Field(default=12 * 3600, ge=1)
    session_cookie_secure: bool = Field(default=False)

    stun_urls: CsvList = Field(default_factory=lambda: ["stun:stun.l.google.com:19302"])
    turn_urls: CsvList = Field(default_factory=list)
    turn_username: str = Field(default="")
    turn_credential: str = Field(default="")

    @field_validator("cors_allow_origins", "stun_urls", "turn_urls", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        """Allow comma-separated env values for list settings."""

        if isinstance(value, str):
            parts = [item.strip() for item in value.split(",") if item.strip()]
            return parts
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
