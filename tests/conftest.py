"""Pytest configuration and fixtures for test suite."""

import os
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

# Set test environment BEFORE any other imports
os.environ.setdefault("APP_ENVIRONMENT", "test")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture
def scenario_config():
    """Three-slab table with a 500,000 personal relief."""
    from calculator.tax_year_config import TaxYearConfig

    return TaxYearConfig.custom(
        brackets=[(500000, "0.06"), (1000000, "0.12"), (None, "0.18")],
        personal_relief=500000,
        tax_year=2024,
    )


@pytest.fixture
def indices():
    """Packaged exchange-rate and commodity tables."""
    from calculator.market_indices import get_market_indices

    return get_market_indices()


@pytest.fixture
def thresholds():
    """Default audit-risk thresholds (100,000 / 500,000)."""
    from calculator.audit_risk import RiskThresholds

    return RiskThresholds()


@pytest.fixture
def make_asset():
    """Build an Asset with sensible defaults; keyword arguments override."""
    from models.asset import Asset

    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "id": f"asset-{counter['n']}",
            "owner_id": "alice",
            "category": "A",
            "description": "Test asset",
            "date_acquired": date(2020, 1, 1),
            "cost": Decimal("1000000"),
            "market_value": Decimal("1000000"),
        }
        data.update(overrides)
        return Asset(**data)

    return _make


@pytest.fixture
def make_employment():
    """Build a schedule 1 income record."""
    from models.income import EmploymentDetails, EmploymentIncome

    def _make(gross, apit=0, owner_id="alice", tax_year=2024, income_id=None, benefits=0):
        return EmploymentIncome(
            id=income_id or f"emp-{owner_id}-{tax_year}",
            owner_id=owner_id,
            tax_year=tax_year,
            details=EmploymentDetails(
                employer_name="Employer PLC",
                gross_remuneration=Decimal(str(gross)),
                non_cash_benefits=Decimal(str(benefits)),
                apit_deducted=Decimal(str(apit)),
            ),
        )

    return _make


@pytest.fixture
def make_liability():
    """Build a Liability with no payments by default."""
    from models.liability import Liability

    def _make(**overrides):
        data = {
            "id": "loan-1",
            "owner_id": "alice",
            "description": "Housing loan",
            "lender_name": "Bank",
            "original_amount": Decimal("2000000"),
            "date_acquired": date(2024, 4, 1),
        }
        data.update(overrides)
        return Liability(**data)

    return _make
