"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides Money, the single monetary type of the kernel. Amounts are
    held as an integer count of minor currency units (cents), so every
    comparison and every accumulation is exact.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module. No outward dependencies.

Invariants enforced:
    - Money never holds a float. Decimal text is converted to minor units
      once, at the boundary, via Money.parse().
    - Parsing never rounds: a value with more fractional digits than the
      currency allows is rejected.

Failure modes:
    - TypeError when constructed from a float or bool, or when arithmetic
      mixes Money with a non-Money operand.
    - ValueError from Money.parse() on malformed, non-finite or over-precise
      input.

Design note:
    Legacy money representations compared floats against a 0.01 tolerance.
    With integer minor units a balance is settled exactly when it equals
    zero, so no tolerance exists anywhere in the kernel.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

DEFAULT_DECIMAL_PLACES = 2


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount in integer minor units.

    Contract:
        Wraps a signed int. Money in a Transaction is always >= 0 (the
        ledger enforces that); balances and plan arithmetic may be negative.

    Guarantees:
        - Immutable and hashable (frozen dataclass with slots)
        - minor_units is always an int (never float, never bool)
        - Arithmetic is closed over Money and exact

    Non-goals:
        - Does NOT carry a currency; a scope has exactly one currency and
          the kernel never converts between currencies
        - Does NOT format currency symbols
    """

    minor_units: int

    def __post_init__(self) -> None:
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise TypeError(
                f"Money requires int minor units, got {type(self.minor_units).__name__}"
            )

    @classmethod
    def of(cls, minor_units: int) -> Money:
        """Factory for Money from a count of minor units."""
        return cls(minor_units)

    @classmethod
    def zero(cls) -> Money:
        """Create a zero amount."""
        return cls(0)

    @classmethod
    def parse(
        cls,
        value: Decimal | str | int,
        decimal_places: int = DEFAULT_DECIMAL_PLACES,
    ) -> Money:
        """
        Parse a decimal amount into minor units.

        Preconditions:
            - value is a Decimal, a decimal string or an int of whole units.
              Floats are refused; they would already have lost precision.

        Postconditions:
            - Returns Money whose minor_units equal value * 10**decimal_places
              exactly.

        Raises:
            TypeError: If value is a float.
            ValueError: If value is not a finite decimal or has more
                fractional digits than decimal_places.
        """
        if isinstance(value, float):
            raise TypeError("Money.parse does not accept float; pass a string")
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
        if not amount.is_finite():
            raise ValueError(f"Invalid amount: {value!r}")

        scaled = amount.scaleb(decimal_places)
        if scaled != scaled.to_integral_value():
            raise ValueError(
                f"Amount {value!r} has more than {decimal_places} decimal places"
            )
        return cls(int(scaled))

    @property
    def is_zero(self) -> bool:
        return self.minor_units == 0

    @property
    def is_positive(self) -> bool:
        return self.minor_units > 0

    @property
    def is_negative(self) -> bool:
        return self.minor_units < 0

    def to_decimal(self, decimal_places: int = DEFAULT_DECIMAL_PLACES) -> Decimal:
        """Convert back to a decimal amount of major units."""
        return Decimal(self.minor_units).scaleb(-decimal_places)

    def format(self, decimal_places: int = DEFAULT_DECIMAL_PLACES) -> str:
        """Render as a plain decimal string, e.g. ``-12.50``."""
        return f"{self.to_decimal(decimal_places):.{decimal_places}f}"

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.minor_units + other.minor_units)

    def __radd__(self, other: object) -> Money:
        # Lets the builtin sum() start from 0.
        if other == 0:
            return self
        if isinstance(other, Money):
            return Money(other.minor_units + self.minor_units)
        return NotImplemented

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.minor_units - other.minor_units)

    def __neg__(self) -> Money:
        return Money(-self.minor_units)

    def __abs__(self) -> Money:
        return Money(abs(self.minor_units))

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.minor_units < other.minor_units

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.minor_units <= other.minor_units

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.minor_units > other.minor_units

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.minor_units >= other.minor_units

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"Money({self.minor_units})"
