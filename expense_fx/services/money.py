"""Money / rounding helpers.

Centralized so conversion, previews and persisted expense details use identical
parsing and rounding semantics. Amounts stay as Decimal until presentation.
"""

from __future__ import annotations
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[Decimal, int, float, str]


def round2(value: Number) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_positive_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """Return ``value`` as a Decimal if it is a positive finite number, else None.

    Accepts form text ("83.5", " 100 "), ints, floats and Decimals. Booleans,
    blanks, NaN and infinities yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not dec.is_finite() or dec <= 0:
        return None
    return dec


def _group_en_in(integer_part: str) -> str:
    # Indian grouping: last three digits, then pairs (12,34,567)
    if len(integer_part) <= 3:
        return integer_part
    head, tail = integer_part[:-3], integer_part[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_inr(amount: Number) -> str:
    """Format an amount the way en-IN renders INR, e.g. ``₹1,23,456.70``."""
    rounded = round2(amount)
    sign = "-" if rounded < 0 else ""
    integer_part, _, fraction = f"{abs(rounded):.2f}".partition(".")
    return f"{sign}₹{_group_en_in(integer_part)}.{fraction}"
