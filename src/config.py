"""
Runtime settings for the payments ledger.

Loaded from environment variables (or a local `.env` file) with Pydantic
Settings. Only ambient concerns live here; ledger rules are not configurable.
"""
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field("WARNING", alias="LEDGER_LOG_LEVEL")

    # fractional digits kept on input amounts and rendered on output
    amount_decimal_places: int = Field(4, ge=0, le=18, alias="LEDGER_AMOUNT_DECIMAL_PLACES")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached Settings instance, parsed from the environment once."""
    return Settings()
