from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from .constants import BASE_CURRENCY, normalize_currency


def _number_to_text(v: Any) -> Any:
    # Form fields arrive as text; JSON clients may send numbers instead.
    if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
        return str(v)
    return v


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConversionRequest(CamelModel):
    """One form interaction: the inputs a conversion is computed from.

    Amount and manual rate are kept as text so that a half-typed or invalid value
    withholds the conversion instead of failing the request.
    """

    transaction_date: Optional[date] = None
    foreign_currency: str = BASE_CURRENCY
    foreign_amount: Optional[str] = None
    manual_rate_override: Optional[str] = None

    @field_validator("foreign_currency")
    @classmethod
    def valid_currency(cls, v: str) -> str:
        return normalize_currency(v)

    @field_validator("foreign_amount", "manual_rate_override", mode="before")
    @classmethod
    def numbers_as_text(cls, v: Any) -> Any:
        v = _number_to_text(v)
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ConversionDetailsOut(CamelModel):
    base_currency: str = BASE_CURRENCY
    exchange_rate: float
    converted_amount: float


class ConversionOut(CamelModel):
    state: str
    exchange_rate: str
    conversion_result: Optional[str] = None
    conversion_data: Optional[ConversionDetailsOut] = None
    is_fetching_rate: bool = False
    resolved_rate_date: Optional[date] = None
    converted_amount_inr: Optional[Decimal] = None
    preview: Optional[str] = None


class ResolvedRateOut(CamelModel):
    currency: str
    base_currency: str = BASE_CURRENCY
    requested_date: date
    rate_date: date
    rate: Decimal
    is_fallback: bool
    status_message: Optional[str] = None
