"""Amount utilities for exact scale-2 money arithmetic."""

from decimal import Decimal, InvalidOperation
from typing import Union

from wallet_ledger.exceptions import ValidationError

# Reference currency has 2 fractional digits
MONEY_SCALE = 2
CENT = Decimal("0.01")


def to_money(value: Union[Decimal, str, int]) -> Decimal:
    """Convert a value to an exact scale-2 Decimal.

    Floats are refused and so are values with more than 2 fractional digits:
    the amount is never silently rounded.

    Example: "10" -> Decimal("10.00"), Decimal("0.5") -> Decimal("0.50")

    Raises:
        ValidationError: not a finite decimal, or too many fractional digits
    """
    if isinstance(value, float):
        raise ValidationError("Amount must be an exact decimal, not a float")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")

    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError(f"Amount out of range: {value!r}")
    if quantized != amount:
        raise ValidationError(f"Amount must have at most {MONEY_SCALE} fractional digits")
    return quantized
