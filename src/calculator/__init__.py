from .tax_year_config import TaxBracket, TaxYearConfig, get_tax_config
from .tax_year import (
    current_tax_year,
    format_tax_year,
    is_date_in_tax_year,
    recent_tax_years,
    tax_year_date_range,
    tax_year_for_date,
    tax_years_from_start,
)
from .market_indices import MarketIndices, get_market_indices
from .valuation import MissingBalanceRecord, get_asset_market_value, value_trend
from .ownership import (
    apportion,
    filter_assets_for_tax_year,
    is_active_at_year_end,
    ownership_fraction,
    records_for_entity,
)
from .investment_income import calculate_derived_investment_income
from .tax_calculator import (
    BracketSlice,
    IncomeSummary,
    TaxComputation,
    TaxCredits,
    calculate_progressive_tax,
    calculate_tax_credits,
    calculate_total_income,
    compute_tax,
    get_tax_breakdown,
)
from .audit_risk import (
    AuditRisk,
    RiskLevel,
    RiskThresholds,
    calculate_audit_risk,
    calculate_family_audit_risk,
)
from .net_worth import NetWorthSnapshot, calculate_net_worth
from .source_of_funds import SourceOfFundsResult, validate_source_of_funds
from .decimal_math import format_lkr

__all__ = [
    "TaxBracket",
    "TaxYearConfig",
    "get_tax_config",
    "current_tax_year",
    "format_tax_year",
    "is_date_in_tax_year",
    "recent_tax_years",
    "tax_year_date_range",
    "tax_year_for_date",
    "tax_years_from_start",
    "MarketIndices",
    "get_market_indices",
    "MissingBalanceRecord",
    "get_asset_market_value",
    "value_trend",
    "apportion",
    "filter_assets_for_tax_year",
    "is_active_at_year_end",
    "ownership_fraction",
    "records_for_entity",
    "calculate_derived_investment_income",
    "BracketSlice",
    "IncomeSummary",
    "TaxComputation",
    "TaxCredits",
    "calculate_progressive_tax",
    "calculate_tax_credits",
    "calculate_total_income",
    "compute_tax",
    "get_tax_breakdown",
    "AuditRisk",
    "RiskLevel",
    "RiskThresholds",
    "calculate_audit_risk",
    "calculate_family_audit_risk",
    "NetWorthSnapshot",
    "calculate_net_worth",
    "SourceOfFundsResult",
    "validate_source_of_funds",
    "format_lkr",
]
