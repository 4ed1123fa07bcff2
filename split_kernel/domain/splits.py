"""
Splits -- build expense shares that add up exactly.

Responsibility:
    Produces the ``shares`` mapping of an expense from the three ways a
    person enters a split: equally, as exact amounts, or as percentages
    (plus integer weights, which percentages reduce to).

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - SHARE_SUM: every builder returns shares whose total equals the amount
      to the minor unit. Indivisible minor units are handed out one at a
      time, by largest remainder, ties broken by member id, so the result
      is deterministic.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from fractions import Fraction

from split_kernel.domain.values import Money
from split_kernel.exceptions import NegativeAmountError, ShareSumMismatchError

HUNDRED = Fraction(100)


def split_equal(amount: Money, participant_ids: Sequence[str]) -> dict[str, Money]:
    """
    Divide ``amount`` equally. Leftover minor units go one each to the
    participants with the lowest ids.

    >>> split_equal(Money(1000), ["c", "a", "b"])
    {'c': Money(333), 'a': Money(334), 'b': Money(333)}
    """
    ids = _unique_participants(participant_ids)
    _require_non_negative(amount)
    base, leftover = divmod(amount.minor_units, len(ids))
    bonus = set(sorted(ids)[:leftover])
    return {member_id: Money(base + (1 if member_id in bonus else 0)) for member_id in ids}


def split_exact(
    amount: Money,
    shares: Mapping[str, Money],
    transaction_id: str = "",
) -> dict[str, Money]:
    """Accept caller-entered amounts as-is after checking they add up."""
    if not shares:
        raise ValueError("An expense needs at least one participant")
    for member_id, share in shares.items():
        if share.is_negative:
            raise NegativeAmountError(transaction_id, f"share[{member_id}]", share.minor_units)
    total = sum(shares.values(), Money.zero())
    if total != amount:
        raise ShareSumMismatchError(transaction_id, amount.minor_units, total.minor_units)
    return dict(shares)


def split_by_weights(amount: Money, weights: Mapping[str, int]) -> dict[str, Money]:
    """Divide ``amount`` in proportion to non-negative integer ``weights``."""
    if not weights:
        raise ValueError("An expense needs at least one participant")
    if any(w < 0 for w in weights.values()):
        raise ValueError("Split weights must be non-negative")
    total = sum(weights.values())
    if total == 0:
        raise ValueError("Split weights must not all be zero")
    _require_non_negative(amount)
    return _largest_remainder(
        amount.minor_units,
        {member_id: Fraction(w, total) for member_id, w in weights.items()},
    )


def split_by_percent(
    amount: Money,
    percents: Mapping[str, Decimal | str | int],
) -> dict[str, Money]:
    """
    Divide ``amount`` by percentages that must total exactly 100.

    Percentages are read as decimals ("33.3", Decimal("12.5"), 50), never
    floats.
    """
    if not percents:
        raise ValueError("An expense needs at least one participant")
    parsed: dict[str, Fraction] = {}
    for member_id, pct in percents.items():
        if isinstance(pct, float):
            raise TypeError("Percentages must be Decimal, str or int, not float")
        value = Fraction(Decimal(str(pct)))
        if value < 0:
            raise ValueError(f"Negative percentage for {member_id}: {pct}")
        parsed[member_id] = value
    total = sum(parsed.values())
    if total != HUNDRED:
        raise ValueError(f"Percentages must total 100, got {total}")
    _require_non_negative(amount)
    return _largest_remainder(
        amount.minor_units,
        {member_id: value / HUNDRED for member_id, value in parsed.items()},
    )


def _largest_remainder(units: int, fractions: Mapping[str, Fraction]) -> dict[str, Money]:
    exact = {member_id: units * f for member_id, f in fractions.items()}
    floors = {member_id: value.numerator // value.denominator for member_id, value in exact.items()}
    leftover = units - sum(floors.values())
    ranked = sorted(exact, key=lambda m: (-(exact[m] - floors[m]), m))
    for member_id in ranked[:leftover]:
        floors[member_id] += 1
    return {member_id: Money(floors[member_id]) for member_id in fractions}


def _unique_participants(participant_ids: Sequence[str]) -> list[str]:
    ids = list(dict.fromkeys(participant_ids))
    if not ids:
        raise ValueError("An expense needs at least one participant")
    return ids


def _require_non_negative(amount: Money) -> None:
    if amount.is_negative:
        raise NegativeAmountError("", "amount", amount.minor_units)
