"""Exact decimal arithmetic for token figures.

All figures are carried as :class:`decimal.Decimal` at full precision and
only truncated when serialized. Floats are rejected outright: amounts carry
up to 18 decimal places and binary floating point cannot represent them.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Context, Decimal, InvalidOperation, localcontext

FIGURE_PLACES = 12

# uint256 has 78 decimal digits; leave headroom for the fractional part.
_CONTEXT = Context(prec=96, rounding=ROUND_DOWN)

Number = Decimal | int | str


def to_decimal(value: Number) -> Decimal:
    """Convert ``value`` to a Decimal without passing through float.

    Raises:
        TypeError: If ``value`` is a float or another unsupported type.
        ValueError: If ``value`` is not a finite decimal number.
    """
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, str)):
        raise TypeError(
            f"Figures must be Decimal, int or str, got {type(value).__name__}"
        )
    try:
        result = Decimal(value.strip() if isinstance(value, str) else value)
    except InvalidOperation as exc:
        raise ValueError(f"Not a decimal number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a finite decimal number: {value!r}")
    return result


def from_base_units(raw: Number, decimals: int) -> Decimal:
    """Normalize an amount in smallest units to whole tokens.

    ``from_base_units(10**18, 18) == Decimal(1)``. Scaling by a power of ten
    is exact, so no rounding happens here.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    with localcontext(_CONTEXT):
        return to_decimal(raw).scaleb(-decimals)


def add(*values: Number) -> Decimal:
    """Sum ``values`` at full precision."""
    with localcontext(_CONTEXT):
        total = Decimal(0)
        for value in values:
            total += to_decimal(value)
        return total


def subtract(minuend: Number, *subtrahends: Number) -> Decimal:
    """Return ``minuend - sum(subtrahends)`` at full precision."""
    with localcontext(_CONTEXT):
        return to_decimal(minuend) - add(*subtrahends)


def truncate(value: Number, places: int = FIGURE_PLACES) -> Decimal:
    """Round toward zero to ``places`` decimal places. Never rounds up."""
    with localcontext(_CONTEXT):
        return to_decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)


def format_figure(value: Number, places: int = FIGURE_PLACES) -> str:
    """Serialize a figure with exactly ``places`` decimals, truncated.

    >>> format_figure("774094434.1778573301459999")
    '774094434.177857330145'
    """
    return f"{truncate(value, places):f}"


def to_plain_string(value: Number) -> str:
    """Full-precision string without exponent notation."""
    return f"{to_decimal(value):f}"
