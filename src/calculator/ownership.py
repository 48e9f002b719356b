"""
Ownership apportionment and asset activity for a tax year.

Every record belongs either to a single owner (``owner_id``) or, for joint
assets and liabilities, to a list of ownership shares. When a computation
is made for one entity, each record contributes only that entity's share.
When it is made for the whole family (``entity_id=None``), records are
taken whole, so a joint record is counted exactly once.
"""

from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, TypeVar

from calculator.decimal_math import HUNDRED, ONE, ZERO, Numeric, to_decimal
from calculator.tax_year import tax_year_date_range
from models.asset import Asset
from models.ownership import validate_ownership_shares

T = TypeVar("T")


def ownership_fraction(record, entity_id: Optional[str]) -> Decimal:
    """
    Fraction (0..1) of ``record`` owned by ``entity_id``.

    Records without shares belong wholly to ``owner_id``. ``entity_id=None``
    means the family view and always returns 1.
    """
    if entity_id is None:
        return ONE
    shares = getattr(record, "ownership_shares", None) or []
    if shares:
        validate_ownership_shares(shares)
        for share in shares:
            if share.entity_id == entity_id:
                return to_decimal(share.percentage) / HUNDRED
        return ZERO
    return ONE if record.owner_id == entity_id else ZERO


def apportion(amount: Numeric, record, entity_id: Optional[str]) -> Decimal:
    """Portion of ``amount`` attributable to ``entity_id``, unrounded."""
    fraction = ownership_fraction(record, entity_id)
    if fraction == ONE:
        return to_decimal(amount)
    return to_decimal(amount) * fraction


def records_for_entity(records: Iterable[T], entity_id: Optional[str]) -> List[T]:
    """Records in which ``entity_id`` holds a non-zero share (all records when None)."""
    return [r for r in records if ownership_fraction(r, entity_id) > 0]


def is_active_at_year_end(asset: Asset, tax_year: int) -> bool:
    """Asset is held on March 31 closing ``tax_year``."""
    _, year_end = tax_year_date_range(tax_year)
    if asset.date_acquired > year_end:
        return False
    end = asset.end_date
    return end is None or end > year_end


def held_during(asset: Asset, tax_year: int) -> bool:
    """Asset was held on at least one day of ``tax_year``."""
    year_start, year_end = tax_year_date_range(tax_year)
    if asset.date_acquired > year_end:
        return False
    end = asset.end_date
    return end is None or end >= year_start


def filter_assets_for_tax_year(assets: Sequence[Asset], tax_year: int) -> List[Asset]:
    """
    Assets relevant to ``tax_year``.

    Includes assets acquired on or before the year end that were not
    disposed of or closed before the year started. Disposed or closed
    assets remain visible for the year they left the statement in.
    """
    return [a for a in assets if held_during(a, tax_year)]
