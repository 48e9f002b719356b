"""
Tax year helpers for the Sri Lankan year of assessment (April 1 - March 31).

A tax year is identified by its starting calendar year: 2024 means the
year of assessment 2024/2025, running from April 1, 2024 to March 31, 2025.
Functions that depend on "now" take an explicit ``today`` so results are
reproducible.
"""

from datetime import date
from typing import List, Optional, Tuple, Union

FISCAL_START_MONTH = 4  # April

TaxYearLike = Union[int, str]


def _year(tax_year: TaxYearLike) -> int:
    return int(tax_year)


def tax_year_for_date(d: date) -> int:
    """
    Tax year a calendar date falls in.

    Examples:
        >>> tax_year_for_date(date(2025, 3, 31))
        2024
        >>> tax_year_for_date(date(2025, 4, 1))
        2025
    """
    if d.month < FISCAL_START_MONTH:
        return d.year - 1
    return d.year


def current_tax_year(today: Optional[date] = None) -> int:
    """Tax year containing ``today`` (defaults to the system date)."""
    return tax_year_for_date(today or date.today())


def format_tax_year(tax_year: TaxYearLike) -> str:
    """
    Display label for a tax year.

    Examples:
        >>> format_tax_year(2024)
        '2024/2025'
    """
    start = _year(tax_year)
    return f"{start}/{start + 1}"


def tax_year_date_range(tax_year: TaxYearLike) -> Tuple[date, date]:
    """First and last day (inclusive) of the tax year."""
    start = _year(tax_year)
    return date(start, FISCAL_START_MONTH, 1), date(start + 1, 3, 31)


def tax_year_end(tax_year: TaxYearLike) -> date:
    """March 31 closing the tax year; the reference date for balances and valuations."""
    return tax_year_date_range(tax_year)[1]


def is_date_in_tax_year(d: date, tax_year: TaxYearLike) -> bool:
    start, end = tax_year_date_range(tax_year)
    return start <= d <= end


def recent_tax_years(count: int = 5, today: Optional[date] = None) -> List[int]:
    """The ``count`` most recent tax years, newest first."""
    current = current_tax_year(today)
    return [current - i for i in range(count)]


def tax_years_from_start(start_year: TaxYearLike, today: Optional[date] = None) -> List[int]:
    """Tax years from the current one back to ``start_year``, newest first."""
    current = current_tax_year(today)
    return list(range(current, _year(start_year) - 1, -1))
