# storefront/domain/money.py
from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0.00")
_CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Round to whole cents, half-up. Floats go through str() to avoid binary noise."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)
