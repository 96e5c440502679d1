from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from expense_fx.models.constants import BASE_CURRENCY
from expense_fx.services.money import Number, to_positive_decimal

"""INR equivalent conversion.

convert() is a pure multiplication with no rounding; presentation layers format
the result. ConversionDetails is the piece of a conversion that gets embedded in
a saved expense record.
"""


def convert(foreign_amount: Optional[Number], resolved_rate: Optional[Number]) -> Optional[Decimal]:
    amount = to_positive_decimal(foreign_amount)
    rate = to_positive_decimal(resolved_rate)
    if amount is None or rate is None:
        return None
    return amount * rate


@dataclass(frozen=True)
class ConversionDetails:
    exchange_rate: Decimal
    converted_amount: Decimal
    base_currency: str = BASE_CURRENCY

    def as_record(self) -> Dict[str, Any]:
        """Shape stored on the expense record under ``conversionDetails``."""
        return {
            "baseCurrency": self.base_currency,
            "exchangeRate": float(self.exchange_rate),
            "convertedAmount": float(self.converted_amount),
        }


def build_conversion_details(
    currency: str, foreign_amount: Optional[Number], rate: Optional[Number]
) -> Optional[ConversionDetails]:
    """Details for a saved expense, or None for INR / incomplete input."""
    if currency.strip().upper() == BASE_CURRENCY:
        return None
    converted = convert(foreign_amount, rate)
    if converted is None:
        return None
    return ConversionDetails(exchange_rate=to_positive_decimal(rate), converted_amount=converted)  # type: ignore[arg-type]
