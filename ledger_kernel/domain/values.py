"""Monetary helpers shared by the kernel and modules."""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """Coerce to Decimal.  Floats are rejected to keep amounts exact."""
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be float; use Decimal or str")
    return value if isinstance(value, Decimal) else Decimal(value)


def round_money(value: Decimal | int | str) -> Decimal:
    """Round to the currency unit (0.01), half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
