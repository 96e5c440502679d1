from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from expense_fx.core.config import Settings
from expense_fx.models.constants import BASE_CURRENCY, normalize_currency
from expense_fx.models.conversion import ResolvedRateOut
from expense_fx.services.converter import fallback_message
from expense_fx.services.rates.base import RateProvider
from expense_fx.services.rates.resolver import resolve_rate
from .deps import get_app_settings, get_rate_provider, get_today

"""Rates router.

GET /rates/{currency}/{on} resolves the INR rate for a transaction date using the
look-back search. Window-level failures surface as JSON errors through the
handlers registered in core.errors (422 future/too old, 404 no rate, 503 not
configured).
"""

router = APIRouter(prefix="/rates", tags=["rates"])


@router.get(
    "/{currency}/{on}",
    response_model=ResolvedRateOut,
    summary="Resolve the INR rate for a currency on a date",
)
async def get_resolved_rate(
    currency: str,
    on: date,
    provider: RateProvider = Depends(get_rate_provider),
    settings: Settings = Depends(get_app_settings),
    today: date = Depends(get_today),
):
    try:
        code = normalize_currency(currency)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if code == BASE_CURRENCY:
        raise HTTPException(status_code=400, detail="INR amounts need no conversion")

    resolved = await resolve_rate(
        on, code, provider, today=today, lookback_days=settings.rate_lookback_days
    )
    return ResolvedRateOut(
        currency=resolved.currency,
        requested_date=resolved.requested_date,
        rate_date=resolved.rate_date,
        rate=resolved.rate,
        is_fallback=resolved.is_fallback,
        status_message=fallback_message(resolved.rate_date) if resolved.is_fallback else None,
    )
