"""
Derived schedule 3 income.

Interest on deposits, cash and loans given, and dividends on share
portfolios, are not entered as income records. They are read from the
yearly balance history of the assets that earned them, converted to LKR,
and split between joint owners. The resulting InvestmentIncome entries are
marked ``derived`` and are rebuilt on every call.
"""

import logging
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from calculator.decimal_math import ZERO, money, percent_share
from calculator.market_indices import MarketIndices, get_market_indices
from models.asset import Asset, AssetCategory
from models.income import InvestmentDetails, InvestmentIncome, InvestmentIncomeType

logger = logging.getLogger(__name__)

# (income type, gross, wht) in the asset's currency, or None when the year has no evidence
YearIncome = Optional[Tuple[InvestmentIncomeType, Decimal, Decimal]]


def _interest(asset: Asset, tax_year: int) -> YearIncome:
    record = asset.balance_for(tax_year)
    if record is None:
        return None
    return InvestmentIncomeType.INTEREST, record.interest_earned, record.wht_deducted


def _dividends(asset: Asset, tax_year: int) -> YearIncome:
    statement = asset.stock_balance_for(tax_year)
    if statement is not None:
        return InvestmentIncomeType.DIVIDEND, statement.dividends, statement.wht_deducted
    record = asset.balance_for(tax_year)
    if record is not None:
        return InvestmentIncomeType.DIVIDEND, record.interest_earned, record.wht_deducted
    return None


def _none(asset: Asset, tax_year: int) -> YearIncome:
    return None


_INCOME_RULES: Dict[AssetCategory, Callable[[Asset, int], YearIncome]] = {
    AssetCategory.IMMOVABLE_PROPERTY: _none,
    AssetCategory.MOTOR_VEHICLE: _none,
    AssetCategory.BANK_DEPOSIT: _interest,
    AssetCategory.SHARES: _dividends,
    AssetCategory.CASH: _interest,
    AssetCategory.LOANS_GIVEN: _interest,
    AssetCategory.JEWELLERY: _none,
    AssetCategory.BUSINESS_PROPERTY: _none,
}

_missing = set(AssetCategory) - set(_INCOME_RULES)
if _missing:
    raise RuntimeError(f"No investment income rule for asset categories: {sorted(c.value for c in _missing)}")


def has_balance_evidence(asset: Asset, tax_year: int) -> bool:
    """The asset's balance history evidences its schedule 3 income for ``tax_year``."""
    return _INCOME_RULES[asset.category](asset, int(tax_year)) is not None


def _entry(asset: Asset, tax_year: int, owner_id: str, entry_id: str,
           income_type: InvestmentIncomeType, gross: Decimal, wht: Decimal) -> InvestmentIncome:
    return InvestmentIncome(
        id=entry_id,
        owner_id=owner_id,
        tax_year=tax_year,
        income_type=income_type,
        details=InvestmentDetails(
            source=asset.description or asset.id,
            gross_amount=money(gross),
            wht_deducted=money(wht),
        ),
        source_asset_id=asset.id,
        derived=True,
    )


def calculate_derived_investment_income(
    assets: Sequence[Asset],
    tax_year: int,
    indices: Optional[MarketIndices] = None,
) -> List[InvestmentIncome]:
    """
    Schedule 3 entries derived from asset balances for ``tax_year``.

    Joint assets yield one entry per shareholder, apportioned by percentage.
    Years with no balance record and zero-income years produce no entries.
    """
    tax_year = int(tax_year)
    indices = indices or get_market_indices()
    derived: List[InvestmentIncome] = []

    for asset in assets:
        found = _INCOME_RULES[asset.category](asset, tax_year)
        if found is None:
            continue
        income_type, gross, wht = found
        if gross == ZERO:
            continue

        gross_lkr = indices.to_lkr(gross, asset.currency, tax_year)
        wht_lkr = indices.to_lkr(wht, asset.currency, tax_year)
        base_id = f"derived-{asset.id}-{tax_year}"

        if not asset.is_joint:
            derived.append(_entry(asset, tax_year, asset.owner_id, base_id, income_type, gross_lkr, wht_lkr))
            continue

        for share in asset.ownership_shares:
            share_gross = percent_share(gross_lkr, share.percentage)
            if share_gross == ZERO:
                continue
            derived.append(_entry(
                asset, tax_year, share.entity_id, f"{base_id}-{share.entity_id}",
                income_type, share_gross, percent_share(wht_lkr, share.percentage),
            ))

    logger.debug(f"Derived {len(derived)} investment income entries for {tax_year}")
    return derived


def merge_investment_income(
    incomes: Sequence,
    assets: Sequence[Asset],
    tax_year: int,
    indices: Optional[MarketIndices] = None,
) -> List:
    """
    Income records for ``tax_year`` with derived schedule 3 income merged in.

    Stale derived entries in ``incomes`` are discarded. A hand-entered
    schedule 3 record pointing at an asset whose balances evidence that year
    is dropped in favour of the derived figure.
    """
    tax_year = int(tax_year)
    by_id = {a.id: a for a in assets}
    merged = []

    for income in incomes:
        if income.tax_year != tax_year:
            continue
        if isinstance(income, InvestmentIncome):
            if income.derived:
                continue
            source = by_id.get(income.source_asset_id) if income.source_asset_id else None
            if source is not None and has_balance_evidence(source, tax_year):
                logger.warning(
                    f"Dropping hand-entered income {income.id}: asset {source.id} "
                    f"balances already evidence {tax_year}"
                )
                continue
        merged.append(income)

    merged.extend(calculate_derived_investment_income(assets, tax_year, indices))
    return merged
