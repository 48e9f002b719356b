from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Iterable, Optional, Sequence, Tuple, Union

from calculator.decimal_math import Numeric, to_decimal
from config.tax_config_loader import InvalidTaxConfig, get_config_loader


@dataclass(frozen=True)
class TaxBracket:
    """
    One slab of the progressive table.

    ``limit`` is the cumulative upper bound of the slab; None marks the
    final, unbounded slab.
    """

    limit: Optional[Decimal]
    rate: Decimal

    @property
    def is_open(self) -> bool:
        return self.limit is None


BracketInput = Union[TaxBracket, Tuple[Optional[Numeric], Numeric]]


def _to_bracket(item: BracketInput) -> TaxBracket:
    if isinstance(item, TaxBracket):
        return item
    limit, rate = item
    return TaxBracket(
        limit=None if limit is None else to_decimal(limit),
        rate=to_decimal(rate),
    )


def _check_brackets(brackets: Sequence[TaxBracket]) -> None:
    if not brackets:
        raise InvalidTaxConfig("A tax table needs at least one bracket")
    previous = Decimal("0")
    for index, bracket in enumerate(brackets):
        if bracket.rate < 0:
            raise InvalidTaxConfig(f"Bracket {index} has a negative rate")
        if bracket.limit is None:
            if index != len(brackets) - 1:
                raise InvalidTaxConfig("Open-ended bracket must be last")
            continue
        if bracket.limit <= previous:
            raise InvalidTaxConfig("Bracket limits must be strictly ascending")
        previous = bracket.limit


@dataclass(frozen=True)
class TaxYearConfig:
    """
    Personal income tax table for one year of assessment.

    NOTE: Values come from config/tax_parameters/tax_year_<YYYY>.yaml and
    should be reviewed annually against IRD published figures.
    """

    tax_year: Optional[int]
    brackets: Tuple[TaxBracket, ...]
    personal_relief: Decimal
    rent_relief_rate: Decimal = Decimal("0.25")
    max_solar_relief: Decimal = Decimal("600000")

    @classmethod
    def for_year(cls, tax_year: int) -> "TaxYearConfig":
        """
        Build the table for ``tax_year`` from its YAML file.

        Raises:
            ConfigNotFound: no table exists for the year
            InvalidTaxConfig: the table is malformed
        """
        raw = get_config_loader().load_config(int(tax_year))
        brackets = tuple(_to_bracket((b['limit'], str(b['rate']))) for b in raw['brackets'])
        _check_brackets(brackets)
        return cls(
            tax_year=int(tax_year),
            brackets=brackets,
            personal_relief=to_decimal(str(raw['personal_relief'])),
            rent_relief_rate=to_decimal(str(raw.get('rent_relief_rate', '0.25'))),
            max_solar_relief=to_decimal(str(raw.get('max_solar_relief', '600000'))),
        )

    @classmethod
    def custom(
        cls,
        brackets: Iterable[BracketInput],
        personal_relief: Numeric,
        rent_relief_rate: Numeric = Decimal("0.25"),
        max_solar_relief: Numeric = Decimal("600000"),
        tax_year: Optional[int] = None,
    ) -> "TaxYearConfig":
        """
        Build a table in code, for what-if scenarios and tests.

        Example:
            >>> TaxYearConfig.custom([(500000, "0.06"), (None, "0.12")], 1200000)
        """
        parsed = tuple(_to_bracket(b) for b in brackets)
        _check_brackets(parsed)
        return cls(
            tax_year=tax_year,
            brackets=parsed,
            personal_relief=to_decimal(personal_relief),
            rent_relief_rate=to_decimal(rent_relief_rate),
            max_solar_relief=to_decimal(max_solar_relief),
        )

    def as_tuples(self) -> Tuple[Tuple[Optional[Decimal], Decimal], ...]:
        """Brackets as (limit, rate) pairs for calculate_progressive_tax."""
        return tuple((b.limit, b.rate) for b in self.brackets)


@lru_cache(maxsize=16)
def get_tax_config(tax_year: int) -> TaxYearConfig:
    """Cached table for ``tax_year``; see TaxYearConfig.for_year."""
    return TaxYearConfig.for_year(int(tax_year))
