"""Configuration module for the household tax ledger."""

from .settings import LoggingSettings, RiskSettings, Settings, get_settings
from .tax_config_loader import (
    ConfigNotFound,
    InvalidTaxConfig,
    TaxConfigLoader,
    clear_config_cache,
    get_config_loader,
)

__all__ = [
    "LoggingSettings",
    "RiskSettings",
    "Settings",
    "get_settings",
    "ConfigNotFound",
    "InvalidTaxConfig",
    "TaxConfigLoader",
    "clear_config_cache",
    "get_config_loader",
]
