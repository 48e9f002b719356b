"""
Joint ownership of assets and liabilities.

A record is either owned outright by ``owner_id`` or split between family
members through ``ownership_shares``. Shares must add up to exactly 100%
so that apportioning a record across its owners never creates or loses
value.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from pydantic import BaseModel, Field

from models._decimal_utils import amounts_match


class InconsistentOwnershipShares(ValueError):
    """Joint-ownership percentages are duplicated or do not sum to 100."""


class OwnershipShare(BaseModel):
    """Percentage of a jointly held record attributed to one entity."""
    entity_id: str
    percentage: Decimal = Field(gt=0, le=100, description="Share of the record, 0-100")


def validate_ownership_shares(shares: Iterable[OwnershipShare]) -> List[OwnershipShare]:
    """
    Check that a share list is usable for apportionment.

    An empty list is valid (the record is owned outright by its owner_id).

    Raises:
        InconsistentOwnershipShares: if an entity appears twice or the
            percentages do not total 100.
    """
    shares = list(shares)
    if not shares:
        return shares

    seen = set()
    for share in shares:
        if share.entity_id in seen:
            raise InconsistentOwnershipShares(
                f"Entity {share.entity_id} appears more than once in ownership shares"
            )
        seen.add(share.entity_id)

    total = sum((share.percentage for share in shares), Decimal("0"))
    if not amounts_match(total, 100):
        raise InconsistentOwnershipShares(
            f"Ownership percentages must total 100, got {total}"
        )
    return shares
