#!/usr/bin/env python3
"""
Example script showing how to use the calculation core programmatically
"""
import sys
import os
from datetime import date
from decimal import Decimal

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from models.asset import Asset
from models.income import EmploymentDetails, EmploymentIncome
from models.liability import Liability, LiabilityPayment
from calculator.tax_calculator import compute_tax
from calculator.audit_risk import calculate_audit_risk, calculate_family_audit_risk
from calculator.net_worth import calculate_net_worth
from calculator.decimal_math import format_lkr
from calculator.tax_year import format_tax_year
from config.logging_config import configure_from_settings


TAX_YEAR = 2024


def _household():
    incomes = [
        EmploymentIncome(
            id="emp-nimal",
            owner_id="nimal",
            tax_year=TAX_YEAR,
            details=EmploymentDetails(
                employer_name="ABC Holdings PLC",
                gross_remuneration=Decimal("3600000"),
                apit_deducted=Decimal("180000"),
            ),
        ),
        EmploymentIncome(
            id="emp-kumari",
            owner_id="kumari",
            tax_year=TAX_YEAR,
            details=EmploymentDetails(
                employer_name="Lanka Hospitals",
                gross_remuneration=Decimal("2400000"),
                apit_deducted=Decimal("76000"),
            ),
        ),
    ]
    assets = [
        Asset(
            id="house",
            owner_id="nimal",
            ownership_shares=[
                {"entity_id": "nimal", "percentage": 50},
                {"entity_id": "kumari", "percentage": 50},
            ],
            category="A",
            description="House, Nugegoda",
            date_acquired=date(2019, 8, 1),
            cost=Decimal("18000000"),
            market_value=Decimal("18000000"),
            valuations=[{"tax_year": 2023, "market_value": Decimal("26000000")}],
        ),
        Asset(
            id="fd-1",
            owner_id="kumari",
            category="Bii",
            description="Fixed deposit",
            date_acquired=date(2021, 5, 1),
            cost=Decimal("1000000"),
            balances=[
                {"tax_year": 2023, "closing_balance": Decimal("1200000"), "interest_earned": Decimal("110000")},
                {"tax_year": 2024, "closing_balance": Decimal("1500000"),
                 "interest_earned": Decimal("120000"), "wht_deducted": Decimal("6000")},
            ],
        ),
        Asset(
            id="car",
            owner_id="nimal",
            category="Bi",
            description="Motor car",
            date_acquired=date(2024, 11, 15),
            cost=Decimal("9500000"),
            market_value=Decimal("9500000"),
        ),
    ]
    liabilities = [
        Liability(
            id="leasing",
            owner_id="nimal",
            description="Vehicle lease",
            lender_name="People's Leasing",
            original_amount=Decimal("6000000"),
            date_acquired=date(2024, 11, 15),
            payments=[
                LiabilityPayment(
                    id="lp-1", date=date(2025, 1, 15), tax_year=TAX_YEAR,
                    principal_paid=Decimal("240000"), interest_paid=Decimal("90000"),
                ),
            ],
        ),
    ]
    return incomes, assets, liabilities


def example_tax_computation():
    """Example: Tax computation for one member"""
    print(f"Example 1: Tax Computation {format_tax_year(TAX_YEAR)}")
    print("=" * 60)

    incomes, assets, _ = _household()
    for member in ("nimal", "kumari"):
        result = compute_tax(incomes, assets, TAX_YEAR, entity_id=member)
        print(f"{member}:")
        print(f"  Assessable income: {format_lkr(result.assessable_income)}")
        print(f"  Taxable income:    {format_lkr(result.taxable_income)}")
        for row in result.breakdown:
            print(f"    {row.label:<28} @ {row.rate_label:>4}  {format_lkr(row.tax)}")
        print(f"  Tax on income:     {format_lkr(result.tax_on_income)}")
        print(f"  APIT / WHT:        {format_lkr(result.tax_credits.total)}")
        print(f"  Tax payable:       {format_lkr(result.tax_payable)}")
    print()


def example_audit_risk():
    """Example: Sources and uses of funds for the family"""
    print("Example 2: Audit Risk")
    print("=" * 60)

    incomes, assets, liabilities = _household()
    for member in ("nimal", "kumari"):
        risk = calculate_audit_risk(assets, liabilities, incomes, TAX_YEAR, entity_id=member)
        print(f"{member}: {risk.risk_level.value} (unexplained {format_lkr(risk.risk_score)})")

    family = calculate_family_audit_risk(["nimal", "kumari"], assets, liabilities, incomes, TAX_YEAR)
    print(f"Family inflows:          {format_lkr(family.total_inflows)}")
    print(f"Family outflows:         {format_lkr(family.total_outflows_excl_living)}")
    print(f"Derived living expenses: {format_lkr(family.derived_living_expenses)}")
    print(f"Risk level:              {family.risk_level.value}")
    print()


def example_net_worth():
    """Example: Statement of assets and liabilities"""
    print("Example 3: Net Worth")
    print("=" * 60)

    _, assets, liabilities = _household()
    snapshot = calculate_net_worth(assets, liabilities, TAX_YEAR)
    for code, value in snapshot.assets_by_category.items():
        print(f"  {code:<5} {format_lkr(value)}")
    print(f"Total assets:      {format_lkr(snapshot.total_assets)}")
    print(f"Total liabilities: {format_lkr(snapshot.total_liabilities)}")
    print(f"Net worth:         {format_lkr(snapshot.net_worth)}")
    print()


if __name__ == "__main__":
    configure_from_settings()
    example_tax_computation()
    example_audit_risk()
    example_net_worth()
