"""Currency helpers for INR amounts.

Internal storage unit: rupees as ``Decimal`` with two decimal places.
Gateway unit: paise (smallest INR unit, 100 paise = ₹1), as Razorpay expects.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

PAISE_PER_RUPEE: int = 100
_CENT = Decimal("0.01")


def to_amount(value: Decimal | float | int | str) -> Decimal:
    """Coerce a number to a rupee ``Decimal`` rounded half-up to paise."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def rupees_to_paise(amount: Decimal | float | int | str) -> int:
    """Convert rupees to paise. ₹1 = 100 paise."""
    return int(to_amount(amount) * PAISE_PER_RUPEE)
