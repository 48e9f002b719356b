"""Tests for ownership apportionment and tax-year activity."""

from datetime import date
from decimal import Decimal

import pytest


JOINT = [
    {"entity_id": "alice", "percentage": 60},
    {"entity_id": "bob", "percentage": 40},
]


class TestOwnershipFraction:
    def test_family_view_is_whole(self, make_asset):
        from calculator.ownership import ownership_fraction
        assert ownership_fraction(make_asset(ownership_shares=JOINT), None) == Decimal("1")

    def test_sole_owner(self, make_asset):
        from calculator.ownership import ownership_fraction
        asset = make_asset()
        assert ownership_fraction(asset, "alice") == Decimal("1")
        assert ownership_fraction(asset, "bob") == Decimal("0")

    def test_joint_shares(self, make_asset):
        from calculator.ownership import apportion, ownership_fraction
        asset = make_asset(ownership_shares=JOINT)

        assert ownership_fraction(asset, "alice") == Decimal("0.6")
        assert ownership_fraction(asset, "carol") == Decimal("0")
        assert apportion(100000, asset, "bob") == Decimal("40000")

    def test_shares_override_owner_id(self, make_asset):
        from calculator.ownership import ownership_fraction
        asset = make_asset(owner_id="carol", ownership_shares=JOINT)
        assert ownership_fraction(asset, "carol") == Decimal("0")

    def test_records_for_entity(self, make_asset):
        from calculator.ownership import records_for_entity
        alone = make_asset(owner_id="bob")
        joint = make_asset(ownership_shares=JOINT)

        assert records_for_entity([alone, joint], "alice") == [joint]
        assert records_for_entity([alone, joint], None) == [alone, joint]


class TestFilterAssetsForTaxYear:
    """Which assets belong to the 2024/2025 statement."""

    @pytest.mark.parametrize("overrides", [
        {"date_acquired": date(2020, 1, 1)},
        {"date_acquired": date(2024, 6, 1)},
        {"disposed": {"date": date(2024, 9, 1), "sale_price": 500000}},
        {"closed": {"date": date(2024, 9, 1)}},
        {"disposed": {"date": date(2025, 4, 1), "sale_price": 500000}},
        {"closed": {"date": date(2025, 4, 1)}},
    ])
    def test_included(self, make_asset, overrides):
        from calculator.ownership import filter_assets_for_tax_year
        asset = make_asset(**overrides)
        assert filter_assets_for_tax_year([asset], 2024) == [asset]

    @pytest.mark.parametrize("overrides", [
        {"date_acquired": date(2025, 4, 1)},
        {"disposed": {"date": date(2024, 3, 31), "sale_price": 500000}},
        {"closed": {"date": date(2024, 3, 31)}},
    ])
    def test_excluded(self, make_asset, overrides):
        from calculator.ownership import filter_assets_for_tax_year
        assert filter_assets_for_tax_year([make_asset(**overrides)], 2024) == []


class TestActiveAtYearEnd:
    def test_disposed_in_year_not_active(self, make_asset):
        from calculator.ownership import is_active_at_year_end
        asset = make_asset(disposed={"date": date(2024, 9, 1), "sale_price": 1})
        assert not is_active_at_year_end(asset, 2024)

    def test_disposed_after_year_end_active(self, make_asset):
        from calculator.ownership import is_active_at_year_end
        asset = make_asset(disposed={"date": date(2025, 4, 1), "sale_price": 1})
        assert is_active_at_year_end(asset, 2024)

    def test_acquired_on_last_day_active(self, make_asset):
        from calculator.ownership import is_active_at_year_end
        assert is_active_at_year_end(make_asset(date_acquired=date(2025, 3, 31)), 2024)
