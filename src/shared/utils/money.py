from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

# Type alias for money values
Money = Decimal

ZERO = Decimal("0.00")


def round_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """
    Round monetary value to 2 decimal places using ROUND_HALF_UP.

    Examples:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money("10.115")
        Decimal('10.12')
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if value < 0:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_DOWN)
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_money(value: Any) -> Decimal:
    """Parse a stored amount (Decimal, int, float or numeric text).

    Raises ValueError for anything that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Not an amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not an amount: {value!r}")
    return round_money(amount)


def percent(part: int | Decimal, whole: int | Decimal) -> float:
    """part / whole * 100 rounded to 2 decimals; 0 when whole is 0."""
    if not whole:
        return 0.0
    return round(float(Decimal(part) * 100 / Decimal(whole)), 2)
