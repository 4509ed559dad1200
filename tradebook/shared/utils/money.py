from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

# Type alias for money values
Money = Decimal

# Quantities within this distance are considered equal ("fully delivered" checks).
QTY_TOLERANCE = Decimal("0.01")

ZERO = Decimal("0")


def round_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """
    Round monetary value to 2 decimal places using ROUND_HALF_UP.

    Examples:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money(10.124)
        Decimal('10.12')
        >>> round_money("10.115")
        Decimal('10.12')
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if value < 0:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_DOWN)
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a stored or user-supplied number to Decimal.

    Anything that is not a finite number (None, "", "abc", NaN) becomes 0 so that
    arithmetic on imported data never raises.

    Examples:
        >>> to_decimal("12.50")
        Decimal('12.50')
        >>> to_decimal("n/a")
        Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return ZERO
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def to_optional_decimal(value: Any) -> Decimal | None:
    """Like to_decimal, but keeps a missing value (None or "") as None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal(value)
