"""
Values -- Decimal helpers for quantities, amounts and margins.

Responsibility:
    Single conversion point from loosely-typed ledger input (int, float,
    str, Decimal) into ``Decimal``, plus the percentage formatting used by
    every profit figure.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - All arithmetic downstream of ``to_decimal`` is Decimal-only; floats
      are converted through ``str()`` so 0.1 stays 0.1.
    - Percentages are rounded ROUND_HALF_UP at a fixed number of places.
    - Money derived by division is rounded once, ROUND_HALF_UP, at the
      storage scale (MONEY_PLACES); multiplication never rounds.

Failure modes:
    - ValueError from ``to_decimal`` on non-numeric input (None, "abc",
      NaN, infinities, bool).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Scale of the Numeric(38, 9) money columns.
MONEY_PLACES = 9
MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)


def to_decimal(value: Any) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Preconditions:
        value is a Decimal, int, float or numeric string.

    Postconditions:
        Returns a finite Decimal.

    Raises:
        ValueError: If value is not numeric or not finite.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid numeric value: {value!r}") from e
    else:
        raise ValueError(f"Invalid numeric value: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Numeric value must be finite: {value!r}")
    return result


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning zero when the denominator is zero."""
    if denominator == 0:
        return ZERO
    return numerator / denominator


def round_money(value: Decimal) -> Decimal:
    """
    Round an inexact money figure to MONEY_PLACES (ROUND_HALF_UP).

    Values that already fit are returned unchanged, so exact figures keep
    their own exponent (``Decimal("100")`` stays ``100``, not
    ``100.000000000``).
    """
    rounded = value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    return value if rounded == value else rounded


def prorate(total: Decimal, part: Decimal, whole: Decimal) -> Decimal:
    """
    Share of ``total`` attributable to ``part`` out of ``whole``.

    Multiplies before dividing and rounds once, so ``prorate(100, 3, 3)``
    is exactly 100.  Zero when ``whole`` is zero.
    """
    if whole == 0:
        return ZERO
    return round_money(total * part / whole)


def format_percentage(
    numerator: Decimal,
    denominator: Decimal,
    places: int = 2,
) -> str:
    """
    Format ``numerator / denominator`` as a percentage string.

    Returns e.g. ``"29.52%"``; ``"0.00%"`` when the denominator is not
    positive.
    """
    quantum = Decimal(1).scaleb(-places)
    if denominator <= 0:
        return f"{ZERO.quantize(quantum)}%"
    pct = (numerator / denominator * HUNDRED).quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{pct}%"


def zero_percentage(places: int = 2) -> str:
    """The ``"0.00%"`` literal at the requested precision."""
    return format_percentage(ZERO, ZERO, places)
