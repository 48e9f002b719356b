"""
Exchange-rate and commodity price indices.

Foreign-currency balances are converted to LKR at the March 31 rate of the
tax year; jewellery and other precious items are revalued by the change in
the USD commodity index and the USD/LKR rate since acquisition. Both tables
are read from ``market_indices.yaml`` next to the tax tables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from calculator.decimal_math import ONE, to_decimal
from config.tax_config_loader import CONFIG_DIR, InvalidTaxConfig

logger = logging.getLogger(__name__)

INDICES_FILE = CONFIG_DIR / "market_indices.yaml"

BASE_CURRENCY = "LKR"
OTHER_COMMODITY = "Other"

YearSeries = Dict[int, Decimal]


def _parse_series(raw: Mapping[Any, Any], name: str) -> YearSeries:
    if not isinstance(raw, Mapping) or not raw:
        raise InvalidTaxConfig(f"Index series {name} is empty")
    return {int(year): to_decimal(str(value)) for year, value in raw.items()}


def lookup_year(series: YearSeries, tax_year: int) -> Decimal:
    """
    Value of a year series, tolerating gaps.

    A missing year takes the latest earlier year; a year before the series
    starts takes the earliest year.
    """
    if tax_year in series:
        return series[tax_year]
    earlier = [y for y in series if y < tax_year]
    if earlier:
        return series[max(earlier)]
    return series[min(series)]


@dataclass(frozen=True)
class MarketIndices:
    """Year-end exchange rates (LKR per unit) and USD commodity indices."""

    exchange_rates: Dict[str, YearSeries]
    commodity_indices: Dict[str, YearSeries]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MarketIndices":
        rates = data.get('exchange_rates_to_lkr') or {}
        commodities = data.get('commodity_indices_usd') or {}
        if 'USD' not in rates:
            raise InvalidTaxConfig("Market indices need a USD exchange-rate series")
        if OTHER_COMMODITY not in commodities:
            raise InvalidTaxConfig(f"Market indices need an '{OTHER_COMMODITY}' commodity series")
        return cls(
            exchange_rates={code.upper(): _parse_series(s, code) for code, s in rates.items()},
            commodity_indices={name: _parse_series(s, name) for name, s in commodities.items()},
        )

    @classmethod
    def from_file(cls, path: Path) -> "MarketIndices":
        logger.info(f"Loading market indices from {path}")
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise InvalidTaxConfig(f"{path} does not contain a mapping")
        data.pop('_metadata', None)
        return cls.from_mapping(data)

    def has_currency(self, currency: str) -> bool:
        code = currency.upper()
        return code == BASE_CURRENCY or code in self.exchange_rates

    def exchange_rate(self, currency: str, tax_year: int) -> Optional[Decimal]:
        """
        LKR per unit of ``currency`` at the end of ``tax_year``.

        Returns 1 for LKR and None for a currency with no series.
        """
        code = currency.upper()
        if code == BASE_CURRENCY:
            return ONE
        series = self.exchange_rates.get(code)
        if series is None:
            return None
        return lookup_year(series, int(tax_year))

    def to_lkr(self, amount: Decimal, currency: str, tax_year: int) -> Decimal:
        """
        Convert ``amount`` in ``currency`` to LKR at the end of ``tax_year``.

        A currency with no series is left unconverted.
        """
        fx = self.exchange_rate(currency, tax_year)
        if fx is None:
            logger.warning(f"No exchange rate for {currency} in {tax_year}, value left unconverted")
            return to_decimal(amount)
        return to_decimal(amount) * fx

    def commodity_index(self, item_type: Optional[str], tax_year: int) -> Decimal:
        series = self.commodity_indices.get(item_type or OTHER_COMMODITY)
        if series is None:
            logger.debug(f"No commodity index for {item_type!r}, using {OTHER_COMMODITY}")
            series = self.commodity_indices[OTHER_COMMODITY]
        return lookup_year(series, int(tax_year))

    def appreciation_factor(self, item_type: Optional[str], from_year: int, to_year: int) -> Decimal:
        """
        Growth in LKR value of a precious item between two years.

        The commodity's USD index ratio multiplied by the USD/LKR rate ratio.
        """
        base_index = self.commodity_index(item_type, from_year)
        target_index = self.commodity_index(item_type, to_year)
        base_rate = self.exchange_rate("USD", from_year)
        target_rate = self.exchange_rate("USD", to_year)
        if not base_index or not base_rate:
            return ONE
        return (target_index / base_index) * (target_rate / base_rate)


@lru_cache(maxsize=1)
def get_market_indices() -> MarketIndices:
    """Indices shipped with the package, read once per process."""
    return MarketIndices.from_file(INDICES_FILE)
