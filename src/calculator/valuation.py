"""
Market value of an asset for a tax year.

The value of an asset at March 31 of a tax year is taken from the most
specific evidence available, first match wins:

1. an explicit valuation entry (latest, non-zero, not after the year);
2. the latest property expense that carries a revalued market value;
3. the latest broker statement's portfolio value;
4. a category formula (jewellery appreciation, foreign-currency balances);
5. the static market value entered with the asset.

For the in-progress tax year the "not after the year" bound is lifted so
the latest known record is used.
"""

import logging
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from calculator.decimal_math import ZERO, money, non_negative, to_decimal
from calculator.market_indices import MarketIndices, get_market_indices
from calculator.tax_year import tax_year_for_date
from models.asset import Asset, AssetCategory, JewelleryTransactionType

logger = logging.getLogger(__name__)

R = TypeVar("R")


class MissingBalanceRecord(LookupError):
    """A balance-bearing asset has no closing balance up to the tax year."""

    def __init__(self, asset_id: str, tax_year: int):
        self.asset_id = asset_id
        self.tax_year = tax_year
        super().__init__(f"Asset {asset_id} has no balance record up to tax year {tax_year}")


def _in_scope(records: Iterable[R], tax_year: int, in_progress_year: Optional[int]) -> List[R]:
    if in_progress_year is not None and tax_year == in_progress_year:
        return list(records)
    return [r for r in records if r.tax_year <= tax_year]


def _latest(records: Sequence[R]) -> Optional[R]:
    # later entries for the same year win
    latest = None
    for record in records:
        if latest is None or record.tax_year >= latest.tax_year:
            latest = record
    return latest


def _from_valuations(asset: Asset, tax_year: int, in_progress_year: Optional[int]) -> Optional[Decimal]:
    candidates = [v for v in _in_scope(asset.valuations, tax_year, in_progress_year) if v.market_value > 0]
    latest = _latest(candidates)
    return latest.market_value if latest else None


def _from_property_expenses(asset: Asset, tax_year: int, in_progress_year: Optional[int]) -> Optional[Decimal]:
    candidates = [
        e for e in _in_scope(asset.property_expenses, tax_year, in_progress_year)
        if e.market_value
    ]
    latest = _latest(candidates)
    return latest.market_value if latest else None


def _from_stock_balances(asset: Asset, tax_year: int, in_progress_year: Optional[int]) -> Optional[Decimal]:
    latest = _latest(_in_scope(asset.stock_balances, tax_year, in_progress_year))
    return latest.portfolio_value if latest else None


# ---------------------------------------------------------------------------
# Category formulas
# ---------------------------------------------------------------------------

CategoryValuer = Callable[[Asset, int, Optional[int], MarketIndices, bool], Optional[Decimal]]


def _no_formula(asset, tax_year, in_progress_year, indices, strict):
    return None


def _jewellery_value(asset, tax_year, in_progress_year, indices, strict):
    acquisition_year = tax_year_for_date(asset.date_acquired)
    value = asset.cost * indices.appreciation_factor(asset.item_type, acquisition_year, tax_year)

    for tx in _in_scope(asset.jewellery_transactions, tax_year, in_progress_year):
        factor = indices.appreciation_factor(tx.item_type or asset.item_type, tx.tax_year, tax_year)
        if tx.transaction_type == JewelleryTransactionType.PURCHASE:
            value += tx.amount * factor
        else:
            value -= tx.amount * factor

    return non_negative(value)


def _balance_value(asset, tax_year, in_progress_year, indices, strict):
    latest = _latest(_in_scope(asset.balances, tax_year, in_progress_year))
    if latest is not None:
        return indices.to_lkr(latest.closing_balance, asset.currency, tax_year)

    if strict:
        raise MissingBalanceRecord(asset.id, tax_year)
    logger.warning(
        f"Asset {asset.id} ({asset.category.value}) has no balance record up to {tax_year}; "
        f"using static market value"
    )
    return indices.to_lkr(asset.market_value, asset.currency, tax_year)


_CATEGORY_VALUERS: Dict[AssetCategory, CategoryValuer] = {
    AssetCategory.IMMOVABLE_PROPERTY: _no_formula,
    AssetCategory.MOTOR_VEHICLE: _no_formula,
    AssetCategory.BANK_DEPOSIT: _balance_value,
    AssetCategory.SHARES: _no_formula,
    AssetCategory.CASH: _balance_value,
    AssetCategory.LOANS_GIVEN: _balance_value,
    AssetCategory.JEWELLERY: _jewellery_value,
    AssetCategory.BUSINESS_PROPERTY: _no_formula,
}

_missing = set(AssetCategory) - set(_CATEGORY_VALUERS)
if _missing:
    raise RuntimeError(f"No valuation rule for asset categories: {sorted(c.value for c in _missing)}")


def get_asset_market_value(
    asset: Asset,
    tax_year: int,
    in_progress_year: Optional[int] = None,
    indices: Optional[MarketIndices] = None,
    strict: bool = False,
) -> Decimal:
    """
    LKR market value of ``asset`` at the end of ``tax_year``, rounded to cents.

    Args:
        asset: The asset to value
        tax_year: Tax year to value it for
        in_progress_year: The current, unfinished tax year, if any
        indices: Exchange-rate and commodity tables (packaged tables by default)
        strict: Raise MissingBalanceRecord instead of falling back to the
                static value when a balance-bearing asset has no balances

    Returns:
        Market value in LKR
    """
    tax_year = int(tax_year)
    indices = indices or get_market_indices()

    for source in (_from_valuations, _from_property_expenses, _from_stock_balances):
        value = source(asset, tax_year, in_progress_year)
        if value is not None:
            return money(value)

    value = _CATEGORY_VALUERS[asset.category](asset, tax_year, in_progress_year, indices, strict)
    if value is not None:
        return money(value)

    return money(asset.market_value)


def value_trend(
    asset: Asset,
    years: Iterable[int],
    in_progress_year: Optional[int] = None,
    indices: Optional[MarketIndices] = None,
) -> List[Tuple[int, Decimal]]:
    """(tax_year, market value) pairs for ``years`` in ascending order."""
    indices = indices or get_market_indices()
    return [
        (year, get_asset_market_value(asset, year, in_progress_year, indices))
        for year in sorted({int(y) for y in years})
    ]


def total_cost(asset: Asset, tax_year: Optional[int] = None) -> Decimal:
    """Cost plus capital expenditure recorded up to ``tax_year`` (all when None)."""
    expenses = asset.property_expenses
    if tax_year is not None:
        expenses = [e for e in expenses if e.tax_year <= int(tax_year)]
    return to_decimal(asset.cost) + sum((e.amount for e in expenses), ZERO)
