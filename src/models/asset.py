"""
Statement of Assets

Assets are classified by the IRD cage codes of the Statement of Assets and
Liabilities:

    A     Immovable property
    Bi    Motor vehicles
    Bii   Bank balances, deposits (LKR or foreign currency)
    Biii  Shares and securities
    Biv   Cash in hand
    Bv    Loans given
    Bvi   Jewellery, gold and gems
    C     Business property

Each category carries different evidence of value over time: yearly
balances for deposits, broker statements for share portfolios, appraisals
for property and vehicles, purchase/sale records for jewellery. All of it
is kept on the asset as category-specific sub-records.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from models.ownership import OwnershipShare, validate_ownership_shares


class AssetCategory(str, Enum):
    """IRD cage code of an asset."""
    IMMOVABLE_PROPERTY = "A"
    MOTOR_VEHICLE = "Bi"
    BANK_DEPOSIT = "Bii"
    SHARES = "Biii"
    CASH = "Biv"
    LOANS_GIVEN = "Bv"
    JEWELLERY = "Bvi"
    BUSINESS_PROPERTY = "C"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]

    @property
    def is_balance_bearing(self) -> bool:
        """Categories whose value is evidenced by yearly closing balances."""
        return self in BALANCE_BEARING_CATEGORIES


CATEGORY_LABELS = {
    AssetCategory.IMMOVABLE_PROPERTY: "Immovable Property",
    AssetCategory.MOTOR_VEHICLE: "Motor Vehicle",
    AssetCategory.BANK_DEPOSIT: "Bank Balance / Deposit",
    AssetCategory.SHARES: "Shares / Stocks",
    AssetCategory.CASH: "Cash in Hand",
    AssetCategory.LOANS_GIVEN: "Loans Given",
    AssetCategory.JEWELLERY: "Jewellery / Gold",
    AssetCategory.BUSINESS_PROPERTY: "Business Property",
}

BALANCE_BEARING_CATEGORIES = frozenset({
    AssetCategory.BANK_DEPOSIT,
    AssetCategory.CASH,
    AssetCategory.LOANS_GIVEN,
})


class FundingSourceType(str, Enum):
    CURRENT_INCOME = "current-income"
    ASSET_SALE = "asset-sale"
    LOAN = "loan"
    GIFT = "gift"
    SAVINGS = "savings"


class FundingSource(BaseModel):
    """Declared source of the money used to acquire an asset."""
    source_type: FundingSourceType
    amount: Decimal = Field(ge=0)
    description: Optional[str] = None
    related_id: Optional[str] = Field(default=None, description="Related income, asset or liability id")


class BalanceRecord(BaseModel):
    """Closing balance of a financial asset as of March 31 of the tax year."""
    tax_year: int
    closing_balance: Decimal = Field(description="In the asset's currency")
    interest_earned: Decimal = Field(default=Decimal("0"), ge=0)
    wht_deducted: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None


class StockHolding(BaseModel):
    symbol: str
    quantity: Decimal = Field(ge=0)
    market_price: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def market_value(self) -> Decimal:
        return self.quantity * self.market_price


class StockBalanceRecord(BaseModel):
    """Year-end broker statement for a share portfolio."""
    tax_year: int
    broker_cash_balance: Decimal = Field(default=Decimal("0"))
    cash_transfers: Decimal = Field(default=Decimal("0"), description="Net cash moved into the broker account")
    portfolio_value: Decimal = Field(default=Decimal("0"), ge=0)
    purchases: Decimal = Field(default=Decimal("0"), ge=0)
    dividends: Decimal = Field(default=Decimal("0"), ge=0)
    wht_deducted: Decimal = Field(default=Decimal("0"), ge=0)
    holdings: List[StockHolding] = Field(default_factory=list)


class PropertyExpenseType(str, Enum):
    REPAIR = "repair"
    CONSTRUCTION = "construction"
    RENOVATION = "renovation"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class PropertyExpense(BaseModel):
    """Capital expenditure on a property, optionally with a revalued market value."""
    id: str = ""
    tax_year: int
    date: Optional[date] = None
    description: str = ""
    expense_type: PropertyExpenseType = PropertyExpenseType.OTHER
    amount: Decimal = Field(ge=0)
    market_value: Optional[Decimal] = Field(default=None, ge=0)


class ValuationEntry(BaseModel):
    """Explicit appraisal of an asset for a tax year."""
    id: str = ""
    tax_year: int
    market_value: Decimal = Field(ge=0)
    date: Optional[date] = None
    notes: Optional[str] = None


class JewelleryTransactionType(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"


class JewelleryTransaction(BaseModel):
    id: str = ""
    tax_year: int
    date: Optional[date] = None
    transaction_type: JewelleryTransactionType
    amount: Decimal = Field(ge=0, description="Purchase price or sale proceeds in LKR")
    item_type: Optional[str] = None
    weight: Optional[Decimal] = Field(default=None, ge=0, description="Grams")
    purity: Optional[str] = None


class Disposal(BaseModel):
    date: date
    sale_price: Decimal = Field(ge=0)


class Closure(BaseModel):
    """Account closure; ``final_balance`` is the amount paid out, when known."""
    date: date
    final_balance: Optional[Decimal] = Field(default=None, ge=0)


class Asset(BaseModel):
    """An asset on the Statement of Assets and Liabilities."""
    id: str
    owner_id: str
    ownership_shares: List[OwnershipShare] = Field(default_factory=list)
    category: AssetCategory
    description: str = ""
    date_acquired: date
    currency: str = Field(default="LKR", description="ISO 4217 code for balance-bearing assets")
    item_type: Optional[str] = Field(default=None, description="Metal or gem type for jewellery")

    cost: Decimal = Field(default=Decimal("0"), ge=0)
    market_value: Decimal = Field(default=Decimal("0"), ge=0)
    source_of_funds: Optional[List[FundingSource]] = None

    balances: List[BalanceRecord] = Field(default_factory=list)
    stock_balances: List[StockBalanceRecord] = Field(default_factory=list)
    property_expenses: List[PropertyExpense] = Field(default_factory=list)
    valuations: List[ValuationEntry] = Field(default_factory=list)
    jewellery_transactions: List[JewelleryTransaction] = Field(default_factory=list)

    disposed: Optional[Disposal] = None
    closed: Optional[Closure] = None

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("ownership_shares")
    @classmethod
    def shares_total_one_hundred(cls, v: List[OwnershipShare]) -> List[OwnershipShare]:
        return validate_ownership_shares(v)

    @model_validator(mode="after")
    def one_record_per_year(self) -> "Asset":
        for name in ("balances", "stock_balances", "valuations"):
            years = [record.tax_year for record in getattr(self, name)]
            duplicates = sorted({y for y in years if years.count(y) > 1})
            if duplicates:
                raise ValueError(f"Asset {self.id} has more than one {name} record for tax year(s) {duplicates}")
        return self

    @property
    def is_joint(self) -> bool:
        return bool(self.ownership_shares)

    @property
    def end_date(self) -> Optional[date]:
        """Date the asset left the statement (disposal or closure), if any."""
        dates = [marker.date for marker in (self.disposed, self.closed) if marker is not None]
        return min(dates) if dates else None

    def balance_for(self, tax_year: int) -> Optional[BalanceRecord]:
        return next((b for b in self.balances if b.tax_year == tax_year), None)

    def stock_balance_for(self, tax_year: int) -> Optional[StockBalanceRecord]:
        return next((b for b in self.stock_balances if b.tax_year == tax_year), None)
