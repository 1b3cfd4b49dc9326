"""
Money helpers.

All amounts are held as integer cents. Client input arrives as JSON numbers
or decimal strings ("12.50"); it is converted once, at the edge, through
Decimal so float artefacts (0.1 + 0.2) never reach a stored total.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .validation import ValidationError

# 99,999,999.99 in cents
MAX_AMOUNT_CENTS = 9_999_999_999

_CENT = Decimal("0.01")


def to_decimal(value) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, (int, float)):
        dec = Decimal(str(value))
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            dec = Decimal(s)
        except InvalidOperation:
            return None
    else:
        return None

    if not dec.is_finite():
        return None
    return dec


def parse_cents_or_none(value) -> int | None:
    """Cents for a finite number, else None."""
    dec = to_decimal(value)
    if dec is None:
        return None
    try:
        cents = int((dec * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return None
    return cents


def parse_amount_cents(value) -> int:
    """
    Lenient conversion used by aggregation: anything that is not a finite
    number counts as zero.
    """
    cents = parse_cents_or_none(value)
    return 0 if cents is None else cents


def require_amount_cents(value, field: str = "amount") -> int:
    """Strict conversion for writes: must be a positive amount with at most 2 decimals."""
    dec = to_decimal(value)
    if dec is None:
        raise ValidationError(f"{field} must be a number")
    if dec <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    if dec * 100 > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} is too large")
    if dec != dec.quantize(_CENT):
        raise ValidationError(f"{field} cannot have more than 2 decimal places")
    return int(dec * 100)


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(_CENT)


def format_cents(cents: int) -> str:
    """12345 -> "123.45"."""
    return str(cents_to_decimal(cents))
