"""Fixed-point money helpers.

All pricing arithmetic runs on ``Decimal``. Values enter through
``to_decimal`` (never straight from ``float``) and leave rounded to cents with
half-up rounding, or as fixed-point strings for persistence.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")
RATE_PLACES = Decimal("0.0001")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Coerce a stored amount (str, int, float or Decimal) to ``Decimal``.

    Floats go through ``str`` so ``19.99`` becomes ``Decimal("19.99")`` and not
    its binary approximation.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value) -> Decimal:
    """Round a monetary value to two decimal places, half-up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def percent_to_rate(percent) -> Decimal:
    """Convert a stored percentage (``10`` for 10%) to a fraction (``0.1``)."""
    return to_decimal(percent) / HUNDRED


def money_str(value) -> str:
    """Fixed-point string for persisted money columns, e.g. ``"65.97"``."""
    return str(round2(value))


def rate_str(value) -> str:
    """Persisted tax rate fraction with at least four places, e.g. ``"0.1000"``.

    A rate needing more places keeps all of them (``"0.07375"`` for 7.375%),
    so the stored rate always reproduces the stored tax amount.
    """
    rate = to_decimal(value)
    padded = rate.quantize(RATE_PLACES)
    if padded == rate:
        return str(padded)
    return str(rate.normalize())
