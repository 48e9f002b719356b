"""
Tests for schedule 3 income derived from asset balances.

These tests verify:
1. Interest and dividends come from the year's balance records
2. Joint assets are split between owners by percentage
3. Derived entries replace hand-entered ones for the same asset and year
"""

from decimal import Decimal


class TestDerivedIncome:
    """Tests for calculate_derived_investment_income."""

    def test_interest_from_balance_record(self, make_asset):
        from calculator.investment_income import calculate_derived_investment_income
        from models.income import InvestmentIncomeType
        asset = make_asset(id="fd-1", category="Bii", balances=[
            {"tax_year": 2024, "closing_balance": 1000000, "interest_earned": 80000, "wht_deducted": 4000},
        ])

        [entry] = calculate_derived_investment_income([asset], 2024)

        assert entry.id == "derived-fd-1-2024"
        assert entry.owner_id == "alice"
        assert entry.income_type == InvestmentIncomeType.INTEREST
        assert entry.amount == Decimal("80000.00")
        assert entry.details.wht_deducted == Decimal("4000.00")
        assert entry.derived
        assert entry.source_asset_id == "fd-1"

    def test_no_record_for_year_yields_nothing(self, make_asset):
        from calculator.investment_income import calculate_derived_investment_income
        asset = make_asset(category="Bii", balances=[
            {"tax_year": 2023, "closing_balance": 1000000, "interest_earned": 80000},
        ])
        assert calculate_derived_investment_income([asset], 2024) == []

    def test_zero_interest_yields_nothing(self, make_asset):
        from calculator.investment_income import calculate_derived_investment_income
        asset = make_asset(category="Biv", balances=[{"tax_year": 2024, "closing_balance": 50000}])
        assert calculate_derived_investment_income([asset], 2024) == []

    def test_property_yields_nothing(self, make_asset):
        from calculator.investment_income import calculate_derived_investment_income
        assert calculate_derived_investment_income([make_asset()], 2024) == []

    def test_foreign_interest_converted(self, make_asset):
        from calculator.investment_income import calculate_derived_investment_income
        asset = make_asset(category="Bii", currency="USD", balances=[
            {"tax_year": 2024, "closing_balance": 10000, "interest_earned": 100},
        ])
        [entry] = calculate_derived_investment_income([asset], 2024)
        assert entry.amount == Decimal("29500.00")

    def test_dividends_from_broker_statement(self, make_asset):
        from calculator.investment_income import calculate_derived_investment_income
        from models.income import InvestmentIncomeType
        asset = make_asset(category="Biii", stock_balances=[
            {"tax_year": 2024, "portfolio_value": 500000, "dividends": 25000, "wht_deducted": 3750},
        ])

        [entry] = calculate_derived_investment_income([asset], 2024)

        assert entry.income_type == InvestmentIncomeType.DIVIDEND
        assert entry.amount == Decimal("25000.00")
        assert entry.details.wht_deducted == Decimal("3750.00")

    def test_joint_asset_split(self, make_asset):
        from calculator.investment_income import calculate_derived_investment_income
        asset = make_asset(
            id="fd-joint", category="Bii",
            ownership_shares=[
                {"entity_id": "alice", "percentage": 60},
                {"entity_id": "bob", "percentage": 40},
            ],
            balances=[{"tax_year": 2024, "closing_balance": 1000000, "interest_earned": 100000}],
        )

        entries = calculate_derived_investment_income([asset], 2024)

        assert {e.id: e.amount for e in entries} == {
            "derived-fd-joint-2024-alice": Decimal("60000.00"),
            "derived-fd-joint-2024-bob": Decimal("40000.00"),
        }
        assert sum(e.amount for e in entries) == Decimal("100000.00")


class TestMergeInvestmentIncome:
    """Tests for merge_investment_income."""

    def _hand_entered(self, source_asset_id, amount=99999, income_id="manual-1", derived=False):
        from models.income import InvestmentDetails, InvestmentIncome
        return InvestmentIncome(
            id=income_id, owner_id="alice", tax_year=2024,
            details=InvestmentDetails(gross_amount=Decimal(amount)),
            source_asset_id=source_asset_id, derived=derived,
        )

    def test_hand_entered_duplicate_dropped(self, make_asset):
        from calculator.investment_income import merge_investment_income
        asset = make_asset(id="fd-1", category="Bii", balances=[
            {"tax_year": 2024, "closing_balance": 1000000, "interest_earned": 80000},
        ])

        merged = merge_investment_income([self._hand_entered("fd-1")], [asset], 2024)

        assert [i.id for i in merged] == ["derived-fd-1-2024"]

    def test_hand_entered_kept_without_evidence(self, make_asset):
        from calculator.investment_income import merge_investment_income
        asset = make_asset(id="fd-1", category="Bii")

        merged = merge_investment_income([self._hand_entered("fd-1")], [asset], 2024)

        assert [i.id for i in merged] == ["manual-1"]

    def test_stale_derived_entries_discarded(self, make_asset):
        from calculator.investment_income import merge_investment_income
        stale = self._hand_entered("gone", income_id="derived-gone-2024", derived=True)

        assert merge_investment_income([stale], [make_asset()], 2024) == []

    def test_other_years_filtered(self, make_asset, make_employment):
        from calculator.investment_income import merge_investment_income
        incomes = [make_employment(1000000, tax_year=2023), make_employment(1200000, tax_year=2024)]

        merged = merge_investment_income(incomes, [], 2024)

        assert [i.tax_year for i in merged] == [2024]
