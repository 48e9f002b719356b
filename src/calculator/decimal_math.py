"""
Decimal Math Utilities for Tax Calculations.

Provides precise decimal arithmetic to avoid floating point errors
in tax and reconciliation calculations. All money figures produced by the
calculator package go through these helpers.

Deterministic Calculation - Same inputs always produce same outputs.

Why Decimal?
- Float: 0.1 + 0.2 = 0.30000000000000004
- Decimal: 0.1 + 0.2 = 0.3

This matters for:
- Slab boundaries where limits are exact (Rs. 500,000 vs Rs. 500,000.00001)
- Rounding to cents on the return
- Reconciliation, where a one-cent residue would show up as unexplained wealth
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence, Tuple, Union

# Type alias for values that can be converted to Decimal
Numeric = Union[int, float, str, Decimal]

MONEY_PLACES = Decimal("0.01")  # Round to cents

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Args:
        value: Value to convert (int, float, str, or Decimal)

    Returns:
        Decimal representation

    Examples:
        >>> to_decimal(100)
        Decimal('100')
        >>> to_decimal(100.50)
        Decimal('100.5')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Convert float to string first to preserve representation
        return Decimal(str(value))
    return Decimal(value)


def money(value: Numeric) -> Decimal:
    """
    Convert value to money (rounded to cents).

    Examples:
        >>> money(100.999)
        Decimal('101.00')
        >>> money(100.994)
        Decimal('100.99')
    """
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def add(*values: Numeric) -> Decimal:
    """
    Add multiple values with Decimal precision.

    Examples:
        >>> add(100.10, 200.20, 300.30)
        Decimal('600.60')
    """
    result = ZERO
    for v in values:
        result += to_decimal(v)
    return result


def subtract(a: Numeric, b: Numeric) -> Decimal:
    """Subtract b from a with Decimal precision."""
    return to_decimal(a) - to_decimal(b)


def multiply(a: Numeric, b: Numeric) -> Decimal:
    """Multiply two values with Decimal precision."""
    return to_decimal(a) * to_decimal(b)


def percent_share(value: Numeric, percentage: Numeric) -> Decimal:
    """
    Portion of ``value`` for a percentage expressed on a 0-100 scale.

    Examples:
        >>> percent_share(100000, 60)
        Decimal('60000')
    """
    return multiply(value, percentage) / HUNDRED


def min_decimal(*values: Numeric) -> Decimal:
    """Find minimum of values with Decimal precision."""
    return min(to_decimal(v) for v in values)


def max_decimal(*values: Numeric) -> Decimal:
    """Find maximum of values with Decimal precision."""
    return max(to_decimal(v) for v in values)


def non_negative(value: Numeric) -> Decimal:
    """
    Clamp a value at zero.

    Used at the boundaries where a negative figure has no meaning on the
    return: taxable income, tax payable, derived living expenses.
    """
    return max_decimal(ZERO, value)


Bracket = Tuple[Optional[Numeric], Numeric]


def calculate_tax_in_bracket(
    income: Numeric,
    bracket_start: Numeric,
    bracket_end: Optional[Numeric],
    rate_value: Numeric
) -> Decimal:
    """
    Calculate tax for income falling within one slab.

    Args:
        income: Total taxable income
        bracket_start: Start of slab (exclusive)
        bracket_end: End of slab (inclusive), None for the open-ended slab
        rate_value: Tax rate for this slab (e.g., 0.12 for 12%)

    Returns:
        Tax amount for this slab (rounded to cents)

    Examples:
        >>> calculate_tax_in_bracket(750000, 500000, 1000000, 0.12)
        Decimal('30000.00')
    """
    income_d = to_decimal(income)
    start_d = to_decimal(bracket_start)

    if income_d <= start_d:
        return ZERO

    upper = income_d if bracket_end is None else min_decimal(income_d, bracket_end)
    taxable_in_bracket = upper - start_d
    if taxable_in_bracket <= 0:
        return ZERO

    return money(multiply(taxable_in_bracket, rate_value))


def calculate_progressive_tax(
    income: Numeric,
    brackets: Sequence[Bracket]
) -> Decimal:
    """
    Calculate tax using progressive slabs.

    Args:
        income: Taxable income
        brackets: List of (cumulative_limit, rate) tuples in ascending order.
                  Each slab applies from the previous limit to this limit.
                  A limit of None marks the final, unbounded slab.

    Returns:
        Total tax (rounded to cents)

    Examples:
        >>> brackets = [(500000, 0.06), (1000000, 0.12), (None, 0.18)]
        >>> calculate_progressive_tax(700000, brackets)
        Decimal('54000.00')
    """
    income_d = to_decimal(income)
    total_tax = ZERO
    prev_limit = ZERO

    for limit, rate_value in brackets:
        if income_d <= prev_limit:
            break

        if limit is None:
            taxable = income_d - prev_limit
        else:
            taxable = min_decimal(income_d, limit) - prev_limit
        if taxable > 0:
            total_tax += multiply(taxable, rate_value)

        if limit is None:
            break
        prev_limit = to_decimal(limit)

    return money(total_tax)


def format_lkr(value: Optional[Numeric]) -> str:
    """
    Format value as Sri Lankan Rupees.

    Examples:
        >>> format_lkr(1234567.891)
        'Rs. 1,234,567.89'
        >>> format_lkr(None)
        'Rs. 0.00'
    """
    m = money(value if value is not None else 0)
    return f"Rs. {m:,.2f}"


def format_percentage(value: Numeric, decimal_places: int = 0) -> str:
    """
    Format value as percentage string.

    Examples:
        >>> format_percentage(0.06)
        '6%'
        >>> format_percentage(0.2245, 2)
        '22.45%'
    """
    pct = multiply(value, 100)
    return f"{pct:.{decimal_places}f}%"

