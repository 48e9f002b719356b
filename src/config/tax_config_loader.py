"""
Tax Configuration Loader.

Loads Sri Lankan personal income tax tables from YAML files, enabling:
- Annual updates (new slabs, new personal relief) without code changes
- Environment-specific overrides of scalar parameters
- Validation of slab tables before any computation uses them

A tax year with no table is an error. The loader never substitutes the
table of a neighbouring year.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Default config directory
CONFIG_DIR = Path(__file__).parent / "tax_parameters"

SCALAR_PARAMETERS = ("personal_relief", "rent_relief_rate", "max_solar_relief")


class ConfigNotFound(LookupError):
    """No tax table exists for the requested tax year."""

    def __init__(self, tax_year: int, path: Optional[Path] = None):
        self.tax_year = tax_year
        self.path = path
        super().__init__(f"No tax configuration for tax year {tax_year}/{(tax_year + 1) % 100:02d}")


class InvalidTaxConfig(ValueError):
    """A tax table exists but cannot be used."""


@dataclass
class ConfigMetadata:
    """Metadata about a configuration file."""
    version: str
    tax_year: int
    effective_date: str
    source: str  # "IRD", "custom"
    act_references: List[str] = field(default_factory=list)
    last_updated: str = ""
    notes: str = ""


class TaxConfigLoader:
    """
    Loads and manages tax tables from YAML files.

    Features:
    - Automatic file discovery by tax year (``tax_year_<YYYY>.yaml``)
    - Environment variable overrides (``TAX_<YYYY>_<PARAM>``)
    - Slab table validation
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize the config loader.

        Args:
            config_dir: Directory containing YAML config files.
                       Defaults to src/config/tax_parameters/
        """
        self.config_dir = config_dir or CONFIG_DIR
        self._configs: Dict[int, Dict[str, Any]] = {}
        self._metadata: Dict[int, ConfigMetadata] = {}

    def load_config(self, tax_year: int) -> Dict[str, Any]:
        """
        Load configuration for a specific tax year.

        Args:
            tax_year: Starting calendar year of the assessment year (e.g. 2024 for 2024/25)

        Returns:
            Dictionary of tax parameters

        Raises:
            ConfigNotFound: no table exists for the year
            InvalidTaxConfig: the table is malformed
        """
        tax_year = int(tax_year)
        if tax_year in self._configs:
            return self._configs[tax_year]

        config = self._load_from_file(tax_year)
        config = self._apply_env_overrides(config, tax_year)
        self._validate_config(config, tax_year)

        self._configs[tax_year] = config
        return config

    def available_years(self) -> List[int]:
        """Tax years that have a table on disk, ascending."""
        years = []
        for path in self.config_dir.glob("tax_year_*.yaml"):
            suffix = path.stem[len("tax_year_"):]
            if suffix.isdigit():
                years.append(int(suffix))
        return sorted(years)

    def _load_from_file(self, tax_year: int) -> Dict[str, Any]:
        """Load configuration from the year's YAML file."""
        year_file = self.config_dir / f"tax_year_{tax_year}.yaml"
        if not year_file.exists():
            logger.error(f"No config file found for tax year {tax_year} at {year_file}")
            raise ConfigNotFound(tax_year, year_file)

        logger.info(f"Loading tax config from {year_file}")
        with open(year_file, 'r') as f:
            try:
                year_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidTaxConfig(f"Could not parse {year_file}: {e}") from e

        if not isinstance(year_config, dict):
            raise InvalidTaxConfig(f"{year_file} does not contain a mapping")

        if '_metadata' in year_config:
            self._metadata[tax_year] = ConfigMetadata(**year_config.pop('_metadata'))
        return year_config

    def _apply_env_overrides(self, config: Dict[str, Any], tax_year: int) -> Dict[str, Any]:
        """Apply environment variable overrides to scalar parameters."""
        # Environment variables like TAX_2024_PERSONAL_RELIEF=1200000
        prefix = f"TAX_{tax_year}_"

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue
            param_name = key[len(prefix):].lower()
            if param_name not in SCALAR_PARAMETERS:
                logger.warning(f"Ignoring env override for unknown parameter: {key}")
                continue
            try:
                config[param_name] = Decimal(value)
                logger.info(f"Applied env override: {param_name}={value}")
            except InvalidOperation:
                logger.warning(f"Could not parse env override: {key}={value}")

        return config

    def _validate_config(self, config: Dict[str, Any], tax_year: int) -> None:
        """Validate the table for completeness and consistency."""
        missing = [p for p in ('personal_relief', 'brackets') if p not in config]
        if missing:
            raise InvalidTaxConfig(f"Missing required parameters for {tax_year}: {missing}")

        brackets = config['brackets']
        if not isinstance(brackets, list) or not brackets:
            raise InvalidTaxConfig(f"Tax year {tax_year} has no brackets")

        previous_limit = Decimal("0")
        for index, bracket in enumerate(brackets):
            if not isinstance(bracket, dict) or 'rate' not in bracket or 'limit' not in bracket:
                raise InvalidTaxConfig(f"Bracket {index} for {tax_year} needs 'limit' and 'rate'")
            if Decimal(str(bracket['rate'])) < 0:
                raise InvalidTaxConfig(f"Bracket {index} for {tax_year} has a negative rate")

            limit = bracket['limit']
            if limit is None:
                if index != len(brackets) - 1:
                    raise InvalidTaxConfig(f"Open-ended bracket must be last for {tax_year}")
                continue
            limit = Decimal(str(limit))
            if limit <= previous_limit:
                raise InvalidTaxConfig(f"Bracket limits for {tax_year} must be strictly ascending")
            previous_limit = limit

    def get_parameter(self, param_name: str, tax_year: int, default: Any = None) -> Any:
        """
        Get a specific parameter value.

        Args:
            param_name: Name of the parameter
            tax_year: Tax year
            default: Default value if the table does not define it

        Returns:
            Parameter value
        """
        config = self.load_config(tax_year)
        return config.get(param_name, default)

    def get_metadata(self, tax_year: int) -> Optional[ConfigMetadata]:
        """Get metadata for a tax year's configuration."""
        self.load_config(tax_year)  # Ensure loaded
        return self._metadata.get(tax_year)

    def compare_years(self, year1: int, year2: int) -> Dict[str, Dict[str, Any]]:
        """
        Compare configuration between two tax years.

        Returns:
            Dictionary with 'added', 'removed', 'changed' keys
        """
        config1 = self.load_config(year1)
        config2 = self.load_config(year2)

        keys1 = set(config1.keys())
        keys2 = set(config2.keys())

        return {
            'added': {k: config2[k] for k in keys2 - keys1},
            'removed': {k: config1[k] for k in keys1 - keys2},
            'changed': {
                k: {'old': config1[k], 'new': config2[k]}
                for k in keys1 & keys2
                if config1[k] != config2[k]
            }
        }


# Global singleton
_config_loader: Optional[TaxConfigLoader] = None


def get_config_loader() -> TaxConfigLoader:
    """Get the global config loader instance."""
    global _config_loader
    if _config_loader is None:
        _config_loader = TaxConfigLoader()
    return _config_loader


def clear_config_cache() -> None:
    """Clear the configuration cache (useful for testing)."""
    global _config_loader
    _config_loader = None
    # Imported here to avoid a cycle: calculator.tax_year_config imports this module
    from calculator.tax_year_config import get_tax_config
    get_tax_config.cache_clear()
