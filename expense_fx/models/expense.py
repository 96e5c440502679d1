from __future__ import annotations
import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from .constants import BASE_CURRENCY, normalize_currency
from .conversion import CamelModel, ConversionDetailsOut, _number_to_text


class ExpenseIn(CamelModel):
    """Expense draft as submitted from the add/edit forms.

    ``exchange_rate`` carries whatever is in the rate field (typed by the user or
    kept from a saved expense); when blank the service resolves one. Rate
    failures never block submission, so the date is not range-checked here.
    """

    amount: Decimal = Field(..., gt=0)
    currency: str = BASE_CURRENCY
    date: datetime.date
    description: Optional[str] = None
    exchange_rate: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def valid_currency(cls, v: str) -> str:
        return normalize_currency(v)

    @field_validator("exchange_rate", mode="before")
    @classmethod
    def rate_as_text(cls, v: Any) -> Any:
        v = _number_to_text(v)
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ExpenseOut(CamelModel):
    amount: Decimal
    currency: str
    date: datetime.date
    description: Optional[str] = None
    conversion_details: Optional[ConversionDetailsOut] = None
    conversion_result: Optional[str] = None

    @model_validator(mode="after")
    def inr_has_no_conversion(self) -> "ExpenseOut":
        if self.currency == BASE_CURRENCY and self.conversion_details is not None:
            raise ValueError("INR expenses carry no conversion details")
        return self

    def as_record(self) -> dict:
        """Document shape for the expense store; conversionDetails omitted when absent."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"conversion_result"},
        )
