"""Application settings using Pydantic Settings.

Centralized configuration for the household tax ledger.

Environment variables:
- APP_*: application info and defaults (APP_DEFAULT_TAX_YEAR, ...)
- RISK_*: audit-risk thresholds (RISK_WARNING_AMOUNT, RISK_DANGER_AMOUNT, ...)
- LOG_*: logging (LOG_LEVEL, LOG_JSON_OUTPUT, LOG_FILE)
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RiskSettings(BaseSettings):
    """Audit-risk thresholds for the sources-and-uses check."""

    model_config = SettingsConfigDict(
        env_prefix="RISK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    warning_amount: Decimal = Field(
        default=Decimal("100000"), ge=0,
        description="Unexplained amount (LKR) above which risk is a warning"
    )
    danger_amount: Decimal = Field(
        default=Decimal("500000"), ge=0,
        description="Unexplained amount (LKR) above which risk is danger"
    )
    warning_income_ratio: Decimal = Field(
        default=Decimal("0"), ge=0,
        description="Warning threshold as a fraction of declared income (larger of the two applies)"
    )
    danger_income_ratio: Decimal = Field(
        default=Decimal("0"), ge=0,
        description="Danger threshold as a fraction of declared income (larger of the two applies)"
    )

    @model_validator(mode="after")
    def danger_above_warning(self) -> "RiskSettings":
        if self.danger_amount < self.warning_amount:
            raise ValueError("RISK_DANGER_AMOUNT must not be below RISK_WARNING_AMOUNT")
        return self


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(default=False, description="Emit JSON log lines on the console")
    file: Optional[Path] = Field(default=None, description="Optional JSON log file")

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="Household Tax Ledger", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")

    # Tax year configuration
    default_tax_year: Optional[int] = Field(
        default=None,
        description="Tax year used when none is selected; the current tax year when unset"
    )
    strict_valuation: bool = Field(
        default=False,
        description="Raise instead of falling back when a deposit has no balance record"
    )

    # Nested settings (loaded separately)
    @property
    def risk(self) -> RiskSettings:
        return RiskSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    return Settings()
