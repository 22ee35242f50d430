"""
Money helpers.

Amounts are integer cents everywhere in the application; these functions are
the only places that convert to decimals or display strings.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

_CENT = Decimal("0.01")


def cents_to_decimal(cents: int) -> Decimal:
    """``12345`` -> ``Decimal("123.45")``."""
    return (Decimal(cents) / 100).quantize(_CENT)


def decimal_to_cents(amount: Decimal | float | str) -> int:
    """``123.45`` -> ``12345``, rounding half-up to the nearest cent."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percentage_of(cents: Optional[int], percent: int) -> int:
    """Return ``percent`` % of an amount in cents, rounded half-up."""
    if not cents:
        return 0
    return int((Decimal(cents) * percent / 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_cents(cents: Optional[int]) -> str:
    """Format cents with a comma decimal separator and dot thousands separator.

    >>> format_cents(123456)
    '1.234,56'
    >>> format_cents(None)
    '0,00'
    """
    if cents is None:
        return "0,00"
    sign = "-" if cents < 0 else ""
    euros, remainder = divmod(abs(cents), 100)
    return f"{sign}{euros:,}".replace(",", ".") + f",{remainder:02d}"


__all__ = ["cents_to_decimal", "decimal_to_cents", "format_cents", "percentage_of"]
