"""
Quantity helpers for cart lines.

Quantities travel as decimal strings ("2", "1.5") and are always added with
Decimal arithmetic, never floats, so repeated increments do not drift.
"""
from decimal import Decimal, InvalidOperation

from exceptions.cart import InvalidQuantityException


def parse_quantity(value) -> Decimal:
    """
    Parse a quantity given as string, int, float or Decimal.

    Floats go through str() first so 0.1 stays 0.1 instead of its binary
    approximation.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(str(value).strip())


def format_quantity(value) -> str:
    """
    Render a quantity as the canonical decimal string: "3", "1.5", "0.25".

    Trailing zeros are dropped so "2.0" + "1" is stored as "3", not "3.0".
    """
    quantity = parse_quantity(value)
    if not quantity.is_finite():
        raise ValueError(f"quantity {value!r} is not finite")
    if quantity == quantity.to_integral_value():
        return str(quantity.quantize(Decimal(1)))
    return format(quantity.normalize(), "f")


def add_quantities(current, increment) -> str:
    """
    Exact sum of two quantities, returned as a decimal string.

    Example:
        >>> add_quantities("2", 1)
        '3'
        >>> add_quantities("0.1", "0.2")
        '0.3'
    """
    return format_quantity(parse_quantity(current) + parse_quantity(increment))


def require_positive(value) -> Decimal:
    """
    Parse a quantity and make sure it can live in a cart.

    Raises:
        InvalidQuantityException: value is not a finite number or is <= 0
    """
    try:
        quantity = parse_quantity(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidQuantityException(value, "not a number")
    if not quantity.is_finite():
        raise InvalidQuantityException(value, "not a finite number")
    if quantity <= 0:
        raise InvalidQuantityException(value)
    return quantity
