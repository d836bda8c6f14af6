"""Application configuration, read from RESERVATION_* environment variables (and .env)"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings"""
    model_config = SettingsConfigDict(
        env_prefix="RESERVATION_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    api_title: str = "Reservation Management API"
    secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "reservation-api"
    jwt_audience: str = "reservation-clients"
    access_token_expire_minutes: int = Field(default=30, ge=1)
    log_level: str = "INFO"
    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    max_reservation_days: int = Field(default=365, ge=1)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
