"""
Source-of-funds check for a single asset.

Every asset acquisition should be explained by declared funding sources:
current income, the sale of another asset, a loan, a gift or savings.
"""

from decimal import Decimal

from pydantic import BaseModel

from calculator.decimal_math import ZERO, money, non_negative
from models.asset import Asset


class SourceOfFundsResult(BaseModel):
    is_valid: bool
    declared_funding: Decimal
    unexplained_amount: Decimal


def validate_source_of_funds(asset: Asset) -> SourceOfFundsResult:
    """
    Compare declared funding with the asset's cost.

    An asset with no declared sources is wholly unexplained. Funding above
    the cost is accepted.
    """
    if asset.source_of_funds is None:
        return SourceOfFundsResult(
            is_valid=False,
            declared_funding=ZERO,
            unexplained_amount=money(asset.cost),
        )

    declared = sum((source.amount for source in asset.source_of_funds), ZERO)
    gap = asset.cost - declared
    return SourceOfFundsResult(
        is_valid=gap <= 0,
        declared_funding=money(declared),
        unexplained_amount=money(non_negative(gap)),
    )
