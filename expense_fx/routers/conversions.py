from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from expense_fx.core.config import Settings
from expense_fx.models.conversion import ConversionOut, ConversionRequest
from expense_fx.models.expense import ExpenseIn, ExpenseOut
from expense_fx.services.converter import CurrencyConverter
from expense_fx.services.rates.base import RateProvider
from .deps import get_app_settings, get_rate_provider, get_today

"""Conversion router.

Stateless rendition of the expense form: each request carries the current
inputs, builds a fresh CurrencyConverter and returns what the form would show.
A manual rate in the request is treated like a typed rate and skips the lookup.
Window-level failures come back as a status message, never an error status.
"""

router = APIRouter(prefix="/conversions", tags=["conversions"])


def _converter(
    provider: RateProvider,
    settings: Settings,
    today: date,
    *,
    transaction_date,
    currency,
    amount,
    manual_rate,
) -> CurrencyConverter:
    return CurrencyConverter(
        provider,
        transaction_date=transaction_date,
        currency=currency,
        amount=amount,
        initial_exchange_rate=manual_rate,
        lookback_days=settings.rate_lookback_days,
        today=lambda: today,
    )


@router.post("", response_model=ConversionOut, summary="Compute a conversion for form inputs")
async def compute_conversion(
    payload: ConversionRequest,
    provider: RateProvider = Depends(get_rate_provider),
    settings: Settings = Depends(get_app_settings),
    today: date = Depends(get_today),
):
    converter = _converter(
        provider,
        settings,
        today,
        transaction_date=payload.transaction_date,
        currency=payload.foreign_currency,
        amount=payload.foreign_amount,
        manual_rate=payload.manual_rate_override,
    )
    await converter.resolve()
    return converter.view()


@router.post(
    "/expense",
    response_model=ExpenseOut,
    summary="Attach conversion details to an expense draft",
)
async def prepare_expense(
    payload: ExpenseIn,
    provider: RateProvider = Depends(get_rate_provider),
    settings: Settings = Depends(get_app_settings),
    today: date = Depends(get_today),
):
    converter = _converter(
        provider,
        settings,
        today,
        transaction_date=payload.date,
        currency=payload.currency,
        amount=payload.amount,
        manual_rate=payload.exchange_rate,
    )
    await converter.resolve()
    view = converter.view()
    return ExpenseOut(
        amount=payload.amount,
        currency=payload.currency,
        date=payload.date,
        description=payload.description,
        conversion_details=view.conversion_data,
        conversion_result=view.conversion_result,
    )
