"""
Taxpayer entity model.

A household ("family") is simply a list of TaxEntity records; assets and
liabilities refer to entities by id, either through a single owner_id or
through percentage ownership shares.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class EntityType(str, Enum):
    """Legal form of the taxpayer."""
    INDIVIDUAL = "individual"
    COMPANY = "company"
    PARTNERSHIP = "partnership"
    TRUST = "trust"


class EntityRole(str, Enum):
    """Role of an individual within the household."""
    PRIMARY = "primary"
    SPOUSE = "spouse"


class TaxEntity(BaseModel):
    """Taxpayer registered with the Inland Revenue Department."""
    id: str
    name: str
    tin: Optional[str] = Field(default=None, description="Taxpayer Identification Number")
    nic: Optional[str] = Field(default=None, description="National Identity Card number")
    mobile: Optional[str] = None
    email: Optional[str] = None
    entity_type: EntityType = Field(default=EntityType.INDIVIDUAL)
    tax_year: int = Field(description="Tax year the entity was first registered for")
    role: Optional[EntityRole] = None

    @property
    def is_individual(self) -> bool:
        return self.entity_type == EntityType.INDIVIDUAL
