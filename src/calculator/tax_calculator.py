"""
Sri Lankan personal income tax computation.

    assessable income = employment + business + investment (+ manual adjustment)
    taxable income    = max(0, assessable - personal relief - solar relief)
    tax on income     = progressive slabs of the year's table
    tax payable       = max(0, tax on income - (APIT + WHT))

Investment income includes interest and dividends derived from asset
balances (calculator.investment_income). Rent income is reduced by the
year's rent relief rate before it is added.
"""

from decimal import Decimal
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, computed_field

from calculator.decimal_math import (
    ZERO, Numeric, add, calculate_progressive_tax as _slab_tax, calculate_tax_in_bracket,
    format_lkr, format_percentage, min_decimal, money, multiply, non_negative, subtract, to_decimal,
)
from calculator.investment_income import merge_investment_income
from calculator.market_indices import MarketIndices
from calculator.tax_year_config import TaxYearConfig, get_tax_config
from config.logging_config import CalculationLogger, calculation_context
from models.asset import Asset
from models.certificate import Certificate
from models.income import BusinessIncome, EmploymentIncome, InvestmentIncome, InvestmentIncomeType


class IncomeSummary(BaseModel):
    """Income of one entity (or the family) for a tax year, by schedule."""
    tax_year: int
    entity_id: Optional[str] = None
    employment_income: Decimal = ZERO
    business_income: Decimal = ZERO
    investment_income: Decimal = ZERO
    rent_relief: Decimal = ZERO
    total_apit: Decimal = ZERO
    total_wht: Decimal = ZERO
    included_income_ids: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def total_income(self) -> Decimal:
        return money(add(self.employment_income, self.business_income, self.investment_income))


class TaxCredits(BaseModel):
    apit: Decimal = ZERO
    wht: Decimal = ZERO

    @computed_field
    @property
    def total(self) -> Decimal:
        return money(self.apit + self.wht)


class Reliefs(BaseModel):
    personal_relief: Decimal = ZERO
    solar_relief: Decimal = ZERO

    @computed_field
    @property
    def total(self) -> Decimal:
        return money(self.personal_relief + self.solar_relief)


class BracketSlice(BaseModel):
    """One row of the slab breakdown."""
    label: str
    lower: Decimal
    upper: Optional[Decimal] = None
    amount: Decimal
    rate: Decimal
    rate_label: str
    tax: Decimal


class TaxComputation(BaseModel):
    """Result of compute_tax."""
    tax_year: int
    entity_id: Optional[str] = None
    income: IncomeSummary
    manual_adjustment: Decimal = ZERO
    assessable_income: Decimal
    reliefs: Reliefs
    taxable_income: Decimal
    tax_on_income: Decimal
    tax_credits: TaxCredits
    tax_payable: Decimal
    excess_credit: Decimal = Field(default=ZERO, description="Credits above the tax on income; not carried forward")
    breakdown: List[BracketSlice] = Field(default_factory=list)


def calculate_total_income(
    incomes: Sequence,
    assets: Sequence[Asset],
    tax_year: int,
    entity_id: Optional[str] = None,
    config: Optional[TaxYearConfig] = None,
    indices: Optional[MarketIndices] = None,
) -> IncomeSummary:
    """
    Sum income for ``tax_year`` by schedule, with derived investment income merged in.

    Args:
        incomes: Income records (any year; others are ignored)
        assets: Assets whose balances evidence interest and dividends
        tax_year: Tax year
        entity_id: Restrict to one entity's income; None for the family
        config: Tax table (the year's table by default; supplies the rent relief rate)
    """
    tax_year = int(tax_year)
    config = config or get_tax_config(tax_year)

    employment = business = investment = rent_relief = apit = wht = ZERO
    included: List[str] = []

    for income in merge_investment_income(incomes, assets, tax_year, indices):
        if entity_id is not None and income.owner_id != entity_id:
            continue
        included.append(income.id)

        if isinstance(income, EmploymentIncome):
            employment += income.gross_income
            apit += income.details.apit_deducted
        elif isinstance(income, BusinessIncome):
            business += income.details.net_profit
        elif isinstance(income, InvestmentIncome):
            amount = income.amount
            if income.income_type == InvestmentIncomeType.RENT:
                relief = multiply(amount, config.rent_relief_rate)
                rent_relief += relief
                amount -= relief
            investment += amount
            wht += income.details.wht_deducted
        else:
            raise TypeError(f"Unknown income record type: {type(income).__name__}")

    return IncomeSummary(
        tax_year=tax_year,
        entity_id=entity_id,
        employment_income=money(employment),
        business_income=money(business),
        investment_income=money(investment),
        rent_relief=money(rent_relief),
        total_apit=money(apit),
        total_wht=money(wht),
        included_income_ids=included,
    )


def calculate_tax_credits(
    income_summary: IncomeSummary,
    certificates: Optional[Sequence[Certificate]] = None,
) -> TaxCredits:
    """
    APIT and WHT credits for the summary's year and entity.

    Withholdings recorded on income records count first. A certificate adds
    to the credits only when it is not linked to an income record already
    included; employment certificates are APIT, all others WHT.
    """
    apit = income_summary.total_apit
    wht = income_summary.total_wht
    included = set(income_summary.included_income_ids)

    for cert in certificates or []:
        if cert.tax_year != income_summary.tax_year:
            continue
        if income_summary.entity_id is not None and cert.owner_id != income_summary.entity_id:
            continue
        if cert.related_income_id and cert.related_income_id in included:
            continue
        if cert.is_apit:
            apit += cert.tax_deducted
        else:
            wht += cert.tax_deducted

    return TaxCredits(apit=money(apit), wht=money(wht))


def calculate_progressive_tax(taxable_income: Numeric, config: TaxYearConfig) -> Decimal:
    """Slab tax on ``taxable_income`` under ``config``, rounded to cents."""
    return _slab_tax(non_negative(taxable_income), config.as_tuples())


def get_tax_breakdown(taxable_income: Numeric, config: TaxYearConfig) -> List[BracketSlice]:
    """
    Per-slab rows for the slabs ``taxable_income`` reaches.

    Each row's tax is rounded separately, so the row total can differ from
    calculate_progressive_tax by a cent on fractional incomes.
    """
    income = non_negative(taxable_income)
    rows: List[BracketSlice] = []
    lower = ZERO

    for index, bracket in enumerate(config.brackets):
        if income <= lower:
            break
        if bracket.limit is None:
            upper = None
            amount = income - lower
            label = "Balance"
        else:
            upper = bracket.limit
            amount = min_decimal(income, upper) - lower
            width = format_lkr(upper - lower)
            label = f"First {width}" if index == 0 else f"Next {width}"

        rows.append(BracketSlice(
            label=label,
            lower=lower,
            upper=upper,
            amount=money(amount),
            rate=bracket.rate,
            rate_label=format_percentage(bracket.rate),
            tax=calculate_tax_in_bracket(income, lower, upper, bracket.rate),
        ))
        if upper is None:
            break
        lower = upper

    return rows


def compute_tax(
    incomes: Sequence,
    assets: Sequence[Asset],
    tax_year: int,
    manual_adjustment: Optional[Numeric] = None,
    certificates: Optional[Sequence[Certificate]] = None,
    entity_id: Optional[str] = None,
    solar_investment: Numeric = 0,
    config: Optional[TaxYearConfig] = None,
    indices: Optional[MarketIndices] = None,
) -> TaxComputation:
    """
    Full tax computation for one entity (or the family) and tax year.

    Args:
        incomes: Income records
        assets: Assets (for derived interest and dividends)
        tax_year: Tax year
        manual_adjustment: Signed amount added to assessable income
        certificates: APIT / WHT certificates
        entity_id: Entity to compute for; None for the family
        solar_investment: Solar panel investment; relief is capped by the table
        config: Tax table override (the year's table by default)

    Raises:
        ConfigNotFound: no tax table for ``tax_year`` and no ``config`` given
    """
    tax_year = int(tax_year)
    config = config or get_tax_config(tax_year)
    calc_log = CalculationLogger("tax", entity_id)

    with calculation_context(entity_id, tax_year):
        calc_log.start_calculation(tax_year, incomes=len(incomes), assets=len(assets))

        step = calc_log.log_step("income")
        summary = calculate_total_income(incomes, assets, tax_year, entity_id, config, indices)
        calc_log.complete_step("income", step, total_income=summary.total_income)

        adjustment = money(to_decimal(manual_adjustment)) if manual_adjustment is not None else ZERO
        assessable = money(summary.total_income + adjustment)

        reliefs = Reliefs(
            personal_relief=money(config.personal_relief),
            solar_relief=money(min_decimal(non_negative(solar_investment), config.max_solar_relief)),
        )
        taxable = money(non_negative(subtract(assessable, reliefs.total)))
        calc_log.log_income(assessable, reliefs.total, taxable)

        tax_on_income = calculate_progressive_tax(taxable, config)
        credits = calculate_tax_credits(summary, certificates)
        calc_log.log_tax(tax_on_income, credits.apit, credits.wht)

        difference = tax_on_income - credits.total
        result = TaxComputation(
            tax_year=tax_year,
            entity_id=entity_id,
            income=summary,
            manual_adjustment=adjustment,
            assessable_income=assessable,
            reliefs=reliefs,
            taxable_income=taxable,
            tax_on_income=tax_on_income,
            tax_credits=credits,
            tax_payable=money(non_negative(difference)),
            excess_credit=money(non_negative(-difference)),
            breakdown=get_tax_breakdown(taxable, config),
        )
        calc_log.log_result(tax_payable=result.tax_payable, excess_credit=result.excess_credit)

    return result
