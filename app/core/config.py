"""
Application settings loaded from environment variables (prefix LEDGER_) or .env.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Ledger service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite:///./data/ledger.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = False

    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR")
    log_format: str = Field(default="console", description="console or json")

    deviation_percentage_threshold: Decimal = Field(
        default=Decimal("0.20"),
        gt=0,
        description="Relative deviation from the recent average that raises a warning",
    )
    deviation_history_window: int = Field(
        default=10,
        ge=1,
        description="Number of recent rates averaged for deviation checks",
    )
    decimal_shift_tolerance: Decimal = Field(
        default=Decimal("0.15"),
        gt=0,
        description="Base tolerance of the x10 / x0.1 / x100 / x0.01 bands",
    )

    voucher_number_padding: int = Field(default=3, ge=1, le=10)
    rate_history_default_limit: int = Field(default=20, ge=1)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in {"console", "json"}:
            raise ValueError(f"Invalid log format: {v}")
        return fmt


@lru_cache
def get_settings() -> Settings:
    return Settings()
