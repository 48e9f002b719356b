"""Tests for the Statement of Assets and Liabilities totals."""

from datetime import date
from decimal import Decimal


class TestNetWorth:
    def test_assets_less_liabilities(self, make_asset, make_liability):
        from calculator.net_worth import calculate_net_worth
        from models.liability import LiabilityPayment
        house = make_asset(market_value=8000000, cost=6000000)
        deposit = make_asset(category="Bii", balances=[{"tax_year": 2024, "closing_balance": 500000}])
        loan = make_liability(payments=[LiabilityPayment(
            id="p1", date=date(2024, 9, 1), tax_year=2024, principal_paid=Decimal("300000"),
        )])

        snapshot = calculate_net_worth([house, deposit], [loan], 2024)

        assert snapshot.total_assets == Decimal("8500000.00")
        assert snapshot.total_liabilities == Decimal("1700000.00")
        assert snapshot.net_worth == Decimal("6800000.00")
        assert snapshot.assets_by_category == {"A": Decimal("8000000.00"), "Bii": Decimal("500000.00")}
        assert snapshot.asset_count == 2
        assert snapshot.liability_count == 1

    def test_disposed_and_future_assets_excluded(self, make_asset):
        from calculator.net_worth import calculate_net_worth
        sold = make_asset(disposed={"date": date(2024, 10, 1), "sale_price": 900000})
        future = make_asset(date_acquired=date(2025, 5, 1))

        snapshot = calculate_net_worth([sold, future], [], 2024)

        assert snapshot.asset_count == 0
        assert snapshot.total_assets == Decimal("0.00")

    def test_loan_taken_after_year_end_excluded(self, make_liability):
        from calculator.net_worth import calculate_net_worth
        snapshot = calculate_net_worth([], [make_liability(date_acquired=date(2025, 4, 1))], 2024)
        assert snapshot.total_liabilities == Decimal("0.00")

    def test_total_cost_includes_expenses(self, make_asset):
        from calculator.net_worth import calculate_net_worth
        house = make_asset(cost=6000000, property_expenses=[{"tax_year": 2023, "amount": 400000}])
        assert calculate_net_worth([house], [], 2024).total_cost == Decimal("6400000.00")

    def test_joint_asset_apportioned(self, make_asset):
        from calculator.net_worth import calculate_net_worth
        deposit = make_asset(
            category="Bii",
            ownership_shares=[
                {"entity_id": "alice", "percentage": 60},
                {"entity_id": "bob", "percentage": 40},
            ],
            balances=[{"tax_year": 2024, "closing_balance": 100000}],
        )

        alice = calculate_net_worth([deposit], [], 2024, entity_id="alice")
        bob = calculate_net_worth([deposit], [], 2024, entity_id="bob")
        family = calculate_net_worth([deposit], [], 2024)

        assert alice.total_assets == Decimal("60000.00")
        assert bob.total_assets == Decimal("40000.00")
        assert family.total_assets == Decimal("100000.00")

    def test_other_entities_records_skipped(self, make_asset, make_liability):
        from calculator.net_worth import calculate_net_worth
        snapshot = calculate_net_worth([make_asset(owner_id="bob")], [make_liability(owner_id="bob")], 2024, "alice")

        assert snapshot.asset_count == 0
        assert snapshot.liability_count == 0
