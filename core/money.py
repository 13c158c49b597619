from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.core.exceptions import ValidationError


MONEY = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value, *, rounding=ROUND_HALF_UP) -> Decimal:
    """Round to two decimals, half-up. ``None`` counts as zero."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(MONEY, rounding=rounding)


def rate(value) -> Decimal:
    """Parse a fractional rate (``0.05`` is 5%). Blank means zero."""
    if value is None or value == "":
        return Decimal("0")
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"Invalid rate: {value!r}")
    if not parsed.is_finite():
        raise ValidationError(f"Invalid rate: {value!r}")
    return parsed


def amount_in_words(value, currency_label: str = "SOLES") -> str:
    """
    Legal receipt line: ``SON: 100 CON 50/100 SOLES``.
    Integer part is kept numeric.
    """
    amount = money(value)
    integer_part = int(amount)
    cents = int((amount - integer_part) * 100)
    return f"SON: {integer_part} CON {cents:02d}/100 {currency_label}"
