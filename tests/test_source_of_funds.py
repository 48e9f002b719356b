"""Tests for the per-asset source-of-funds check."""

from decimal import Decimal


class TestSourceOfFunds:
    def test_no_sources_is_unexplained(self, make_asset):
        from calculator.source_of_funds import validate_source_of_funds
        result = validate_source_of_funds(make_asset(cost=750000))

        assert not result.is_valid
        assert result.declared_funding == Decimal("0")
        assert result.unexplained_amount == Decimal("750000.00")

    def test_fully_funded(self, make_asset):
        from calculator.source_of_funds import validate_source_of_funds
        asset = make_asset(cost=1000000, source_of_funds=[
            {"source_type": "loan", "amount": 600000},
            {"source_type": "savings", "amount": 400000},
        ])
        result = validate_source_of_funds(asset)

        assert result.is_valid
        assert result.declared_funding == Decimal("1000000.00")
        assert result.unexplained_amount == Decimal("0.00")

    def test_over_funding_accepted(self, make_asset):
        from calculator.source_of_funds import validate_source_of_funds
        asset = make_asset(cost=100000, source_of_funds=[{"source_type": "gift", "amount": 150000}])
        assert validate_source_of_funds(asset).is_valid

    def test_partial_funding(self, make_asset):
        from calculator.source_of_funds import validate_source_of_funds
        asset = make_asset(cost=1000000, source_of_funds=[{"source_type": "current-income", "amount": 250000}])
        result = validate_source_of_funds(asset)

        assert not result.is_valid
        assert result.unexplained_amount == Decimal("750000.00")

    def test_empty_list_declares_nothing(self, make_asset):
        from calculator.source_of_funds import validate_source_of_funds
        result = validate_source_of_funds(make_asset(cost=1000, source_of_funds=[]))

        assert not result.is_valid
        assert result.unexplained_amount == Decimal("1000.00")
