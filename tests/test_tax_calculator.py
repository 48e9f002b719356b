"""
Tests for the income tax computation.

These tests verify:
1. Taxable income is assessable income less reliefs, never negative
2. Slab tax follows the year's table
3. APIT / WHT credits reduce the tax payable, never below zero
4. Derived investment income and rent relief flow into assessable income
"""

from decimal import Decimal

import pytest


class TestComputeTax:
    """End-to-end computations."""

    def test_custom_table_scenario(self, scenario_config, make_employment):
        """1.2M gross, 500k relief: 500k at 6% + 200k at 12%, less 50k APIT."""
        from calculator.tax_calculator import compute_tax
        result = compute_tax(
            [make_employment(1200000, apit=50000)], [], 2024, config=scenario_config,
        )

        assert result.assessable_income == Decimal("1200000.00")
        assert result.taxable_income == Decimal("700000.00")
        assert result.tax_on_income == Decimal("54000.00")
        assert result.tax_credits.apit == Decimal("50000.00")
        assert result.tax_payable == Decimal("4000.00")
        assert result.excess_credit == Decimal("0.00")

    def test_2024_table(self, make_employment):
        from calculator.tax_calculator import compute_tax
        result = compute_tax([make_employment(2400000, apit=50000)], [], 2024)

        assert result.reliefs.personal_relief == Decimal("1200000.00")
        assert result.taxable_income == Decimal("1200000.00")
        assert result.tax_on_income == Decimal("126000.00")
        assert result.tax_payable == Decimal("76000.00")

    def test_zero_income(self, scenario_config):
        from calculator.tax_calculator import compute_tax
        result = compute_tax([], [], 2024, config=scenario_config)

        assert result.taxable_income == Decimal("0.00")
        assert result.tax_on_income == Decimal("0.00")
        assert result.tax_payable == Decimal("0.00")
        assert result.breakdown == []

    def test_income_below_relief_is_not_negative(self, scenario_config, make_employment):
        from calculator.tax_calculator import compute_tax
        result = compute_tax([make_employment(300000)], [], 2024, config=scenario_config)
        assert result.taxable_income == Decimal("0.00")

    def test_excess_credit_reported_not_refunded(self, scenario_config, make_employment):
        from calculator.tax_calculator import compute_tax
        result = compute_tax([make_employment(600000, apit=20000)], [], 2024, config=scenario_config)

        assert result.tax_on_income == Decimal("6000.00")
        assert result.tax_payable == Decimal("0.00")
        assert result.excess_credit == Decimal("14000.00")

    def test_solar_relief_capped(self, make_employment):
        from calculator.tax_calculator import compute_tax
        result = compute_tax(
            [make_employment(3000000)], [], 2024, solar_investment=1000000,
        )

        assert result.reliefs.solar_relief == Decimal("600000.00")
        assert result.taxable_income == Decimal("1200000.00")

    def test_negative_solar_investment_ignored(self, scenario_config, make_employment):
        from calculator.tax_calculator import compute_tax
        result = compute_tax(
            [make_employment(1200000)], [], 2024, solar_investment=-50000, config=scenario_config,
        )
        assert result.reliefs.solar_relief == Decimal("0.00")

    def test_manual_adjustment(self, scenario_config, make_employment):
        from calculator.tax_calculator import compute_tax
        result = compute_tax(
            [make_employment(1200000)], [], 2024, manual_adjustment=-200000, config=scenario_config,
        )

        assert result.manual_adjustment == Decimal("-200000.00")
        assert result.assessable_income == Decimal("1000000.00")
        assert result.taxable_income == Decimal("500000.00")

    def test_missing_table_raises(self, make_employment):
        from calculator.tax_calculator import compute_tax
        from config.tax_config_loader import ConfigNotFound

        with pytest.raises(ConfigNotFound):
            compute_tax([make_employment(1200000, tax_year=2010)], [], 2010)

    def test_other_years_ignored(self, scenario_config, make_employment):
        from calculator.tax_calculator import compute_tax
        incomes = [make_employment(5000000, tax_year=2023), make_employment(1200000)]
        result = compute_tax(incomes, [], 2024, config=scenario_config)
        assert result.assessable_income == Decimal("1200000.00")

    def test_entity_filter(self, scenario_config, make_employment):
        from calculator.tax_calculator import compute_tax
        incomes = [make_employment(1200000), make_employment(900000, owner_id="bob")]

        alice = compute_tax(incomes, [], 2024, entity_id="alice", config=scenario_config)
        family = compute_tax(incomes, [], 2024, config=scenario_config)

        assert alice.assessable_income == Decimal("1200000.00")
        assert family.assessable_income == Decimal("2100000.00")


class TestMonotonicity:
    """More income never means less tax, and the slabs have no jumps."""

    @pytest.mark.parametrize("year", [2020, 2022, 2024, 2025])
    def test_tax_non_decreasing(self, year):
        from calculator.tax_calculator import calculate_progressive_tax
        from calculator.tax_year_config import get_tax_config
        config = get_tax_config(year)

        previous = Decimal("-1")
        for taxable in range(0, 8000001, 250000):
            tax = calculate_progressive_tax(taxable, config)
            assert tax >= previous
            previous = tax

    def test_continuity_at_slab_limits(self):
        from calculator.tax_calculator import calculate_progressive_tax
        from calculator.tax_year_config import get_tax_config
        config = get_tax_config(2024)

        for bracket in config.brackets[:-1]:
            below = calculate_progressive_tax(bracket.limit, config)
            above = calculate_progressive_tax(bracket.limit + 1, config)
            assert above - below <= Decimal("1")


class TestBreakdown:
    def test_2024_breakdown_at_three_million(self):
        from calculator.tax_calculator import calculate_progressive_tax, get_tax_breakdown
        from calculator.tax_year_config import get_tax_config
        config = get_tax_config(2024)

        rows = get_tax_breakdown(3000000, config)

        assert len(rows) == 6
        assert [row.tax for row in rows] == [
            Decimal("30000.00"), Decimal("60000.00"), Decimal("90000.00"),
            Decimal("120000.00"), Decimal("150000.00"), Decimal("180000.00"),
        ]
        assert rows[0].label == "First Rs. 500,000.00"
        assert rows[1].label == "Next Rs. 500,000.00"
        assert rows[-1].label == "Balance"
        assert rows[-1].rate_label == "36%"
        assert sum(row.tax for row in rows) == calculate_progressive_tax(3000000, config)

    def test_breakdown_stops_at_income(self, scenario_config):
        from calculator.tax_calculator import get_tax_breakdown
        rows = get_tax_breakdown(700000, scenario_config)

        assert len(rows) == 2
        assert rows[1].amount == Decimal("200000.00")
        assert rows[1].upper == Decimal("1000000")


class TestTotalIncome:
    """Tests for calculate_total_income."""

    def test_benefits_included(self, scenario_config, make_employment):
        from calculator.tax_calculator import calculate_total_income
        summary = calculate_total_income(
            [make_employment(1000000, benefits=200000)], [], 2024, config=scenario_config,
        )
        assert summary.employment_income == Decimal("1200000.00")

    def test_business_loss_reduces_income(self, scenario_config, make_employment):
        from calculator.tax_calculator import calculate_total_income
        from models.income import BusinessDetails, BusinessIncome
        loss = BusinessIncome(
            id="biz-1", owner_id="alice", tax_year=2024,
            details=BusinessDetails(net_profit=Decimal("-200000")),
        )
        summary = calculate_total_income(
            [make_employment(1000000), loss], [], 2024, config=scenario_config,
        )

        assert summary.business_income == Decimal("-200000.00")
        assert summary.total_income == Decimal("800000.00")

    def test_rent_relief(self, scenario_config):
        from calculator.tax_calculator import calculate_total_income
        from models.income import InvestmentDetails, InvestmentIncome, InvestmentIncomeType
        rent = InvestmentIncome(
            id="rent-1", owner_id="alice", tax_year=2024,
            income_type=InvestmentIncomeType.RENT,
            details=InvestmentDetails(gross_amount=Decimal("600000"), wht_deducted=Decimal("60000")),
        )
        summary = calculate_total_income([rent], [], 2024, config=scenario_config)

        assert summary.rent_relief == Decimal("150000.00")
        assert summary.investment_income == Decimal("450000.00")
        assert summary.total_wht == Decimal("60000.00")

    def test_derived_interest_included(self, scenario_config, make_asset):
        from calculator.tax_calculator import calculate_total_income
        deposit = make_asset(id="fd-1", category="Bii", balances=[
            {"tax_year": 2024, "closing_balance": 1000000, "interest_earned": 80000, "wht_deducted": 4000},
        ])
        summary = calculate_total_income([], [deposit], 2024, config=scenario_config)

        assert summary.investment_income == Decimal("80000.00")
        assert summary.total_wht == Decimal("4000.00")
        assert summary.included_income_ids == ["derived-fd-1-2024"]

    def test_joint_interest_split_by_entity(self, scenario_config, make_asset):
        from calculator.tax_calculator import calculate_total_income
        deposit = make_asset(
            category="Bii",
            ownership_shares=[
                {"entity_id": "alice", "percentage": 60},
                {"entity_id": "bob", "percentage": 40},
            ],
            balances=[{"tax_year": 2024, "closing_balance": 1000000, "interest_earned": 100000}],
        )

        alice = calculate_total_income([], [deposit], 2024, "alice", config=scenario_config)
        bob = calculate_total_income([], [deposit], 2024, "bob", config=scenario_config)

        assert alice.investment_income == Decimal("60000.00")
        assert bob.investment_income == Decimal("40000.00")


class TestTaxCredits:
    """Certificates add to withholdings recorded on income records."""

    def _certificate(self, **overrides):
        from models.certificate import Certificate
        data = {
            "id": "cert-1", "owner_id": "alice", "tax_year": 2024,
            "certificate_type": "interest", "gross_amount": 100000, "tax_deducted": 5000,
        }
        data.update(overrides)
        return Certificate(**data)

    def test_unlinked_certificate_counts(self, scenario_config, make_employment):
        from calculator.tax_calculator import compute_tax
        result = compute_tax(
            [make_employment(1200000, apit=50000)], [], 2024,
            certificates=[self._certificate()], config=scenario_config,
        )

        assert result.tax_credits.apit == Decimal("50000.00")
        assert result.tax_credits.wht == Decimal("5000.00")
        assert result.tax_credits.total == Decimal("55000.00")

    def test_linked_certificate_not_double_counted(self, scenario_config, make_employment):
        from calculator.tax_calculator import compute_tax
        income = make_employment(1200000, apit=50000, income_id="emp-1")
        cert = self._certificate(
            certificate_type="employment", gross_amount=1200000, tax_deducted=50000,
            related_income_id="emp-1",
        )
        result = compute_tax([income], [], 2024, certificates=[cert], config=scenario_config)

        assert result.tax_credits.apit == Decimal("50000.00")

    def test_employment_certificate_is_apit(self, scenario_config):
        from calculator.tax_calculator import IncomeSummary, calculate_tax_credits
        summary = IncomeSummary(tax_year=2024, entity_id="alice")
        cert = self._certificate(certificate_type="employment", tax_deducted=7000)

        credits = calculate_tax_credits(summary, [cert])

        assert credits.apit == Decimal("7000.00")
        assert credits.wht == Decimal("0.00")

    def test_other_owner_and_year_ignored(self):
        from calculator.tax_calculator import IncomeSummary, calculate_tax_credits
        summary = IncomeSummary(tax_year=2024, entity_id="alice")
        certs = [
            self._certificate(id="c1", owner_id="bob"),
            self._certificate(id="c2", tax_year=2023),
        ]
        assert calculate_tax_credits(summary, certs).total == Decimal("0.00")
