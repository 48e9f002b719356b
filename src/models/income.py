"""
Income Schedules

Income is declared on three schedules of the individual return:
- Schedule 1: employment income (remuneration, benefits, APIT withheld)
- Schedule 2: business income (gains and profits)
- Schedule 3: investment income (interest, dividends, rent)

The three record types form a closed union discriminated by ``schedule``.
Interest and dividend income on schedule 3 is normally derived from asset
balance history (see calculator.investment_income) rather than entered
by hand.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class IncomeSchedule(str, Enum):
    """Schedule of the return an income record is declared on."""
    EMPLOYMENT = "1"
    BUSINESS = "2"
    INVESTMENT = "3"


class InvestmentIncomeType(str, Enum):
    """Kind of schedule 3 income."""
    INTEREST = "interest"
    DIVIDEND = "dividend"
    RENT = "rent"
    OTHER = "other"


class EmploymentDetails(BaseModel):
    employer_name: str = ""
    employer_tin: str = ""
    gross_remuneration: Decimal = Field(default=Decimal("0"), ge=0)
    non_cash_benefits: Decimal = Field(default=Decimal("0"), ge=0)
    apit_deducted: Decimal = Field(default=Decimal("0"), ge=0, description="Advance Personal Income Tax withheld")
    exempt_income: Decimal = Field(default=Decimal("0"), ge=0)


class BusinessDetails(BaseModel):
    business_name: str = ""
    gross_revenue: Decimal = Field(default=Decimal("0"), ge=0)
    direct_expenses: Decimal = Field(default=Decimal("0"), ge=0)
    net_profit: Decimal = Field(default=Decimal("0"), description="Gains and profits (may be a loss)")


class InvestmentDetails(BaseModel):
    source: str = ""
    gross_amount: Decimal = Field(default=Decimal("0"), ge=0)
    wht_deducted: Decimal = Field(default=Decimal("0"), ge=0, description="Withholding tax deducted at source")


class _IncomeBase(BaseModel):
    id: str
    owner_id: str
    tax_year: int


class EmploymentIncome(_IncomeBase):
    """Schedule 1 record."""
    schedule: Literal["1"] = "1"
    details: EmploymentDetails = Field(default_factory=EmploymentDetails)

    @property
    def gross_income(self) -> Decimal:
        return self.details.gross_remuneration + self.details.non_cash_benefits


class BusinessIncome(_IncomeBase):
    """Schedule 2 record."""
    schedule: Literal["2"] = "2"
    details: BusinessDetails = Field(default_factory=BusinessDetails)


class InvestmentIncome(_IncomeBase):
    """
    Schedule 3 record.

    ``derived`` marks entries synthesised from asset balances; those are
    recomputed on every call and never stored.
    """
    schedule: Literal["3"] = "3"
    income_type: InvestmentIncomeType = InvestmentIncomeType.INTEREST
    details: InvestmentDetails = Field(default_factory=InvestmentDetails)
    source_asset_id: Optional[str] = None
    derived: bool = False

    @property
    def amount(self) -> Decimal:
        return self.details.gross_amount


Income = Annotated[
    Union[EmploymentIncome, BusinessIncome, InvestmentIncome],
    Field(discriminator="schedule"),
]

_income_adapter: TypeAdapter = TypeAdapter(Income)


def parse_income(data: Dict[str, Any]) -> Union[EmploymentIncome, BusinessIncome, InvestmentIncome]:
    """Build the income variant named by ``data["schedule"]``."""
    return _income_adapter.validate_python(data)
