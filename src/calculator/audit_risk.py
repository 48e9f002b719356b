"""
Audit risk: sources-and-uses of funds reconciliation.

For a tax year every documented movement of money is classified as an
inflow (income, borrowing, sale proceeds, money drawn out of deposits) or
an outflow (tax withheld, asset purchases, money parked in deposits,
capital expenditure, loan repayments). Living expenses are never recorded;
they are whatever inflow is left after documented outflows:

    derived living expenses = max(0, inflows - outflows)
    funding gap             = outflows - inflows
    risk score              = outflows + derived living expenses - inflows

The risk score is the amount of documented spending with no declared
source. It is zero when inflows cover outflows and equals the funding gap
otherwise. Its size against configurable thresholds gives the risk level.
"""

from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, computed_field, model_validator

from calculator.decimal_math import ZERO, add, max_decimal, money, multiply, non_negative
from calculator.market_indices import MarketIndices, get_market_indices
from calculator.ownership import apportion, held_during
from calculator.tax_calculator import calculate_tax_credits, calculate_total_income
from calculator.tax_year import is_date_in_tax_year, tax_year_date_range
from calculator.tax_year_config import TaxYearConfig
from config.logging_config import CalculationLogger, calculation_context
from models.asset import Asset, AssetCategory, JewelleryTransactionType
from models.certificate import Certificate
from models.liability import Liability


class RiskLevel(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


class RiskThresholds(BaseModel):
    """
    Unexplained-amount thresholds.

    Each threshold is the larger of a fixed LKR amount and a fraction of
    the declared income, so households with larger incomes get a
    proportionally larger tolerance when a ratio is set.
    """
    warning_amount: Decimal = Field(default=Decimal("100000"), ge=0)
    danger_amount: Decimal = Field(default=Decimal("500000"), ge=0)
    warning_income_ratio: Decimal = Field(default=ZERO, ge=0)
    danger_income_ratio: Decimal = Field(default=ZERO, ge=0)

    @model_validator(mode="after")
    def danger_above_warning(self) -> "RiskThresholds":
        if self.danger_amount < self.warning_amount:
            raise ValueError("danger_amount must not be below warning_amount")
        return self

    @classmethod
    def from_settings(cls, settings=None) -> "RiskThresholds":
        """Thresholds from RISK_* settings."""
        if settings is None:
            from config.settings import get_settings
            settings = get_settings()
        risk = settings.risk
        return cls(
            warning_amount=risk.warning_amount,
            danger_amount=risk.danger_amount,
            warning_income_ratio=risk.warning_income_ratio,
            danger_income_ratio=risk.danger_income_ratio,
        )

    def limits_for(self, total_income: Decimal) -> Tuple[Decimal, Decimal]:
        """(warning, danger) thresholds for a declared income."""
        income = non_negative(total_income)
        warning = max_decimal(self.warning_amount, multiply(income, self.warning_income_ratio))
        danger = max_decimal(self.danger_amount, multiply(income, self.danger_income_ratio))
        return money(warning), money(max_decimal(warning, danger))

    def classify(self, risk_score: Decimal, total_income: Decimal) -> RiskLevel:
        warning, danger = self.limits_for(total_income)
        if risk_score > danger:
            return RiskLevel.DANGER
        if risk_score > warning:
            return RiskLevel.WARNING
        return RiskLevel.SAFE


class _Flows(BaseModel):
    """Base for flow breakdowns: all fields are LKR amounts that add up to ``total``."""

    def __add__(self, other: "_Flows") -> "_Flows":
        if type(other) is not type(self):
            return NotImplemented
        return type(self)(**{
            name: getattr(self, name) + getattr(other, name)
            for name in type(self).model_fields
        })

    def rounded(self) -> "_Flows":
        return type(self)(**{name: money(getattr(self, name)) for name in type(self).model_fields})

    @computed_field
    @property
    def total(self) -> Decimal:
        return money(add(*(getattr(self, name) for name in type(self).model_fields)))


class InflowBreakdown(_Flows):
    employment_income: Decimal = ZERO
    business_income: Decimal = ZERO
    investment_income: Decimal = ZERO
    new_loans: Decimal = ZERO
    asset_sales: Decimal = ZERO
    jewellery_sales: Decimal = ZERO
    balance_decreases: Decimal = ZERO
    broker_withdrawals: Decimal = ZERO


class OutflowBreakdown(_Flows):
    tax_deducted: Decimal = ZERO
    asset_growth: Decimal = ZERO
    jewellery_purchases: Decimal = ZERO
    balance_increases: Decimal = ZERO
    broker_transfers: Decimal = ZERO
    property_expenses: Decimal = ZERO
    loan_principal: Decimal = ZERO
    loan_interest: Decimal = ZERO


class AuditRisk(BaseModel):
    """Result of the sources-and-uses reconciliation for one entity or the family."""
    tax_year: int
    entity_id: Optional[str] = None
    member_ids: Tuple[str, ...] = ()

    employment_income: Decimal
    business_income: Decimal
    investment_income: Decimal
    total_income: Decimal
    tax_deducted: Decimal
    asset_growth: Decimal
    new_loans: Decimal
    loan_payments: Decimal
    asset_sales: Decimal
    property_expenses: Decimal

    inflow_breakdown: InflowBreakdown
    outflow_breakdown: OutflowBreakdown
    total_inflows: Decimal
    total_outflows_excl_living: Decimal
    derived_living_expenses: Decimal
    funding_gap: Decimal = Field(description="Outflows less inflows; positive means unexplained wealth")
    risk_score: Decimal
    risk_level: RiskLevel
    warning_threshold: Decimal
    danger_threshold: Decimal


# ---------------------------------------------------------------------------
# Balance-bearing assets: year-over-year movement
# ---------------------------------------------------------------------------

def _opening_balance(asset: Asset, tax_year: int) -> Decimal:
    earlier = [b for b in asset.balances if b.tax_year < tax_year]
    if earlier:
        return max(earlier, key=lambda b: b.tax_year).closing_balance
    year_start, _ = tax_year_date_range(tax_year)
    if asset.date_acquired < year_start:
        return asset.cost
    return ZERO


def _balance_on_exit(asset: Asset, tax_year: int, opening: Decimal) -> Decimal:
    closure = asset.closed
    if closure is not None and closure.final_balance is not None and closure.date == asset.end_date:
        return closure.final_balance
    record = asset.balance_for(tax_year)
    return record.closing_balance if record is not None else opening


def balance_movement(asset: Asset, tax_year: int, indices: MarketIndices) -> Tuple[Decimal, Decimal]:
    """
    LKR movement of a balance-bearing asset over ``tax_year``.

    Returns ``(change, withdrawn)``. ``change`` is the signed movement while
    the asset was held. An asset closed or disposed of by the year end is
    then emptied: ``withdrawn`` is the balance it left with (the closure's
    final balance, else the year's record, else the opening balance) and
    its closing balance is zero.
    """
    opening = _opening_balance(asset, tax_year)
    _, year_end = tax_year_date_range(tax_year)

    end = asset.end_date
    if end is not None and end <= year_end:
        exit_balance = _balance_on_exit(asset, tax_year, opening)
        return (
            indices.to_lkr(exit_balance - opening, asset.currency, tax_year),
            indices.to_lkr(exit_balance, asset.currency, tax_year),
        )

    record = asset.balance_for(tax_year)
    closing = record.closing_balance if record is not None else opening
    return indices.to_lkr(closing - opening, asset.currency, tax_year), ZERO


# ---------------------------------------------------------------------------
# Per-category classification
# ---------------------------------------------------------------------------

AssetClassifier = Callable[[Asset, int, Optional[str], MarketIndices, InflowBreakdown, OutflowBreakdown], None]


def _acquired_in(asset: Asset, tax_year: int) -> bool:
    return is_date_in_tax_year(asset.date_acquired, tax_year)


def _disposal(asset, tax_year, entity_id, inflows):
    if asset.disposed is not None and is_date_in_tax_year(asset.disposed.date, tax_year):
        inflows.asset_sales += apportion(asset.disposed.sale_price, asset, entity_id)


def _classify_fixed(asset, tax_year, entity_id, indices, inflows, outflows):
    if _acquired_in(asset, tax_year):
        outflows.asset_growth += apportion(asset.cost, asset, entity_id)
    for expense in asset.property_expenses:
        if expense.tax_year == tax_year:
            outflows.property_expenses += apportion(expense.amount, asset, entity_id)
    _disposal(asset, tax_year, entity_id, inflows)


def _classify_balance(asset, tax_year, entity_id, indices, inflows, outflows):
    change, withdrawn = balance_movement(asset, tax_year, indices)
    # the balance a disposed or closed asset leaves with counts like a withdrawal
    for movement in (apportion(change, asset, entity_id), -apportion(withdrawn, asset, entity_id)):
        if movement > 0:
            outflows.balance_increases += movement
        elif movement < 0:
            inflows.balance_decreases += -movement


def _classify_shares(asset, tax_year, entity_id, indices, inflows, outflows):
    if _acquired_in(asset, tax_year):
        outflows.asset_growth += apportion(asset.cost, asset, entity_id)
    else:
        statement = asset.stock_balance_for(tax_year)
        if statement is not None:
            transfer = apportion(statement.cash_transfers, asset, entity_id)
            if transfer > 0:
                outflows.broker_transfers += transfer
            elif transfer < 0:
                inflows.broker_withdrawals += -transfer
    _disposal(asset, tax_year, entity_id, inflows)


def _classify_jewellery(asset, tax_year, entity_id, indices, inflows, outflows):
    if _acquired_in(asset, tax_year):
        outflows.asset_growth += apportion(asset.cost, asset, entity_id)
    for tx in asset.jewellery_transactions:
        if tx.tax_year != tax_year:
            continue
        amount = apportion(tx.amount, asset, entity_id)
        if tx.transaction_type == JewelleryTransactionType.PURCHASE:
            outflows.jewellery_purchases += amount
        else:
            inflows.jewellery_sales += amount
    _disposal(asset, tax_year, entity_id, inflows)


_CLASSIFIERS: Dict[AssetCategory, AssetClassifier] = {
    AssetCategory.IMMOVABLE_PROPERTY: _classify_fixed,
    AssetCategory.MOTOR_VEHICLE: _classify_fixed,
    AssetCategory.BANK_DEPOSIT: _classify_balance,
    AssetCategory.SHARES: _classify_shares,
    AssetCategory.CASH: _classify_balance,
    AssetCategory.LOANS_GIVEN: _classify_balance,
    AssetCategory.JEWELLERY: _classify_jewellery,
    AssetCategory.BUSINESS_PROPERTY: _classify_fixed,
}

_missing = set(AssetCategory) - set(_CLASSIFIERS)
if _missing:
    raise RuntimeError(f"No flow classifier for asset categories: {sorted(c.value for c in _missing)}")


def classify_fund_flows(
    assets: Sequence[Asset],
    liabilities: Sequence[Liability],
    incomes: Sequence,
    tax_year: int,
    certificates: Optional[Sequence[Certificate]] = None,
    entity_id: Optional[str] = None,
    config: Optional[TaxYearConfig] = None,
    indices: Optional[MarketIndices] = None,
) -> Tuple[InflowBreakdown, OutflowBreakdown]:
    """
    Classify every documented movement of ``tax_year`` as an inflow or outflow.

    With ``entity_id`` each joint record contributes the entity's share;
    without it records are taken whole.
    """
    tax_year = int(tax_year)
    indices = indices or get_market_indices()

    summary = calculate_total_income(incomes, assets, tax_year, entity_id, config, indices)
    credits = calculate_tax_credits(summary, certificates)

    inflows = InflowBreakdown(
        employment_income=summary.employment_income,
        business_income=summary.business_income,
        # Rent relief reduces taxable rent, not the cash received
        investment_income=summary.investment_income + summary.rent_relief,
    )
    outflows = OutflowBreakdown(tax_deducted=credits.total)

    for asset in assets:
        if not held_during(asset, tax_year):
            continue
        _CLASSIFIERS[asset.category](asset, tax_year, entity_id, indices, inflows, outflows)

    for liability in liabilities:
        if is_date_in_tax_year(liability.date_acquired, tax_year):
            inflows.new_loans += apportion(liability.original_amount, liability, entity_id)
        outflows.loan_principal += apportion(liability.principal_paid_in(tax_year), liability, entity_id)
        outflows.loan_interest += apportion(liability.interest_paid_in(tax_year), liability, entity_id)

    return inflows.rounded(), outflows.rounded()


def _assess(
    tax_year: int,
    entity_id: Optional[str],
    member_ids: Tuple[str, ...],
    inflows: InflowBreakdown,
    outflows: OutflowBreakdown,
    thresholds: RiskThresholds,
    calc_log: CalculationLogger,
) -> AuditRisk:
    total_in = inflows.total
    total_out = outflows.total
    living = money(non_negative(total_in - total_out))
    funding_gap = money(total_out - total_in)
    risk_score = money(total_out + living - total_in)

    total_income = money(add(inflows.employment_income, inflows.business_income, inflows.investment_income))
    warning, danger = thresholds.limits_for(total_income)
    level = thresholds.classify(risk_score, total_income)

    calc_log.log_flows(total_in, total_out, living)
    if level != RiskLevel.SAFE:
        calc_log.log_warning(
            "Documented outflows exceed documented inflows",
            risk_score=risk_score, risk_level=level.value,
        )

    return AuditRisk(
        tax_year=tax_year,
        entity_id=entity_id,
        member_ids=member_ids,
        employment_income=inflows.employment_income,
        business_income=inflows.business_income,
        investment_income=inflows.investment_income,
        total_income=total_income,
        tax_deducted=outflows.tax_deducted,
        asset_growth=outflows.asset_growth,
        new_loans=inflows.new_loans,
        loan_payments=money(outflows.loan_principal + outflows.loan_interest),
        asset_sales=inflows.asset_sales,
        property_expenses=outflows.property_expenses,
        inflow_breakdown=inflows,
        outflow_breakdown=outflows,
        total_inflows=total_in,
        total_outflows_excl_living=total_out,
        derived_living_expenses=living,
        funding_gap=funding_gap,
        risk_score=risk_score,
        risk_level=level,
        warning_threshold=warning,
        danger_threshold=danger,
    )


def calculate_audit_risk(
    assets: Sequence[Asset],
    liabilities: Sequence[Liability],
    incomes: Sequence,
    tax_year: int,
    certificates: Optional[Sequence[Certificate]] = None,
    entity_id: Optional[str] = None,
    thresholds: Optional[RiskThresholds] = None,
    config: Optional[TaxYearConfig] = None,
    indices: Optional[MarketIndices] = None,
) -> AuditRisk:
    """
    Sources-and-uses reconciliation for one entity, or all records whole when
    ``entity_id`` is None.

    Raises:
        ConfigNotFound: no tax table for ``tax_year`` and no ``config`` given
    """
    tax_year = int(tax_year)
    thresholds = thresholds or RiskThresholds.from_settings()
    calc_log = CalculationLogger("audit_risk", entity_id)

    with calculation_context(entity_id, tax_year):
        calc_log.start_calculation(tax_year, assets=len(assets), liabilities=len(liabilities))
        inflows, outflows = classify_fund_flows(
            assets, liabilities, incomes, tax_year, certificates, entity_id, config, indices,
        )
        result = _assess(tax_year, entity_id, (), inflows, outflows, thresholds, calc_log)
        calc_log.log_result(risk_score=result.risk_score, risk_level=result.risk_level.value)

    return result


def calculate_family_audit_risk(
    entity_ids: Iterable[str],
    assets: Sequence[Asset],
    liabilities: Sequence[Liability],
    incomes: Sequence,
    tax_year: int,
    certificates: Optional[Sequence[Certificate]] = None,
    thresholds: Optional[RiskThresholds] = None,
    config: Optional[TaxYearConfig] = None,
    indices: Optional[MarketIndices] = None,
) -> AuditRisk:
    """
    Combined reconciliation for a family.

    Each member's flows are classified with joint records apportioned to
    that member, then summed. Living expenses, score and level are derived
    from the combined totals, so a joint record counts once across the
    family.
    """
    tax_year = int(tax_year)
    members = tuple(dict.fromkeys(entity_ids))
    thresholds = thresholds or RiskThresholds.from_settings()
    indices = indices or get_market_indices()
    calc_log = CalculationLogger("family_audit_risk")

    with calculation_context(None, tax_year):
        calc_log.start_calculation(tax_year, members=len(members))
        inflows, outflows = InflowBreakdown(), OutflowBreakdown()
        for member in members:
            member_in, member_out = classify_fund_flows(
                assets, liabilities, incomes, tax_year, certificates, member, config, indices,
            )
            inflows = inflows + member_in
            outflows = outflows + member_out
        result = _assess(tax_year, None, members, inflows, outflows, thresholds, calc_log)
        calc_log.log_result(risk_score=result.risk_score, risk_level=result.risk_level.value)

    return result
