"""Configuration management using Pydantic Settings"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "card-invoices"
    log_level: str = "INFO"

    # Calendar: the real clock is read in this zone, aware datetimes are localized to it
    timezone: str = "America/Sao_Paulo"

    # Request limits
    max_purchases_per_request: int = 10_000

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value!r}") from e
        return value


settings = Settings()
