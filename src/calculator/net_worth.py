"""
Statement of Assets and Liabilities totals at March 31 of a tax year.
"""

import logging
from decimal import Decimal
from typing import Dict, Optional, Sequence

from pydantic import BaseModel, Field

from calculator.decimal_math import ZERO, money, non_negative
from calculator.market_indices import MarketIndices, get_market_indices
from calculator.ownership import apportion, is_active_at_year_end, ownership_fraction
from calculator.tax_year import tax_year_end
from calculator.valuation import get_asset_market_value, total_cost
from config.logging_config import log_performance
from models.asset import Asset
from models.liability import Liability

logger = logging.getLogger(__name__)


class NetWorthSnapshot(BaseModel):
    tax_year: int
    entity_id: Optional[str] = None
    total_assets: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_liabilities: Decimal = ZERO
    net_worth: Decimal = ZERO
    assets_by_category: Dict[str, Decimal] = Field(default_factory=dict)
    asset_count: int = 0
    liability_count: int = 0


@log_performance("calculate_net_worth")
def calculate_net_worth(
    assets: Sequence[Asset],
    liabilities: Sequence[Liability],
    tax_year: int,
    entity_id: Optional[str] = None,
    in_progress_year: Optional[int] = None,
    indices: Optional[MarketIndices] = None,
) -> NetWorthSnapshot:
    """
    Asset value, cost and outstanding liabilities held at the end of ``tax_year``.

    Assets disposed of or closed on or before the year end are left out.
    With ``entity_id`` joint records count at the entity's share; in the
    family view (None) each record counts once, in full.
    """
    tax_year = int(tax_year)
    indices = indices or get_market_indices()
    year_end = tax_year_end(tax_year)

    total_value = total_cost_value = ZERO
    by_category: Dict[str, Decimal] = {}
    asset_count = 0

    for asset in assets:
        if not is_active_at_year_end(asset, tax_year) or ownership_fraction(asset, entity_id) == 0:
            continue
        value = apportion(get_asset_market_value(asset, tax_year, in_progress_year, indices), asset, entity_id)
        total_value += value
        total_cost_value += apportion(total_cost(asset, tax_year), asset, entity_id)
        code = asset.category.value
        by_category[code] = by_category.get(code, ZERO) + value
        asset_count += 1

    total_owed = ZERO
    liability_count = 0
    for liability in liabilities:
        if liability.date_acquired > year_end or ownership_fraction(liability, entity_id) == 0:
            continue
        outstanding = non_negative(liability.balance_at_year_end(tax_year))
        total_owed += apportion(outstanding, liability, entity_id)
        liability_count += 1

    logger.debug(f"Net worth {tax_year}: {asset_count} assets, {liability_count} liabilities")
    return NetWorthSnapshot(
        tax_year=tax_year,
        entity_id=entity_id,
        total_assets=money(total_value),
        total_cost=money(total_cost_value),
        total_liabilities=money(total_owed),
        net_worth=money(total_value - total_owed),
        assets_by_category={code: money(v) for code, v in sorted(by_category.items())},
        asset_count=asset_count,
        liability_count=liability_count,
    )
