from __future__ import annotations

"""Historical rate resolution with a bounded backward search.

Given a transaction date and a foreign currency, find the INR rate to apply:
the rate on that date if the provider has one, otherwise the nearest earlier day
that has one, never looking past the look-back window and never forward.
Lookups are sequential so the search stops on the first hit.

All date arithmetic is on ``datetime.date`` values; no timestamps are involved.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from expense_fx.models.constants import (
    BASE_CURRENCY,
    DEFAULT_LOOKBACK_DAYS,
    normalize_currency,
)
from .base import RateProvider
from .errors import (
    DateTooOld,
    FutureDateRejected,
    NoRateFound,
    ProviderNotConfigured,
    TransientLookupFailure,
)

logger = logging.getLogger("expense_fx.rates.resolver")


@dataclass(frozen=True)
class ResolvedRate:
    currency: str
    rate: Decimal
    rate_date: date
    requested_date: date

    @property
    def is_fallback(self) -> bool:
        return self.rate_date < self.requested_date


def oldest_allowed_date(today: date, lookback_days: int = DEFAULT_LOOKBACK_DAYS) -> date:
    return today - timedelta(days=lookback_days)


def check_window(
    transaction_date: date, today: date, lookback_days: int = DEFAULT_LOOKBACK_DAYS
) -> None:
    """Raise if ``transaction_date`` is outside ``[today - lookback_days, today]``."""
    if transaction_date > today:
        raise FutureDateRejected(transaction_date)
    if transaction_date < oldest_allowed_date(today, lookback_days):
        raise DateTooOld(transaction_date, lookback_days)


async def resolve_rate(
    transaction_date: date,
    foreign_currency: str,
    provider: RateProvider,
    *,
    today: Optional[date] = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> Optional[ResolvedRate]:
    """Resolve the INR rate for ``foreign_currency`` on ``transaction_date``.

    Returns None for INR (nothing to resolve). Otherwise returns a ResolvedRate
    or raises one of FutureDateRejected, DateTooOld, NoRateFound,
    ProviderNotConfigured. Per-day provider failures are absorbed. A malformed
    currency code raises ValueError before any lookup.
    """
    currency = normalize_currency(foreign_currency)
    if currency == BASE_CURRENCY:
        return None
    if lookback_days <= 0:
        raise ValueError("lookback_days must be positive")

    today = today or date.today()
    check_window(transaction_date, today, lookback_days)
    if not provider.configured:
        raise ProviderNotConfigured()

    oldest = oldest_allowed_date(today, lookback_days)
    context = {"currency": currency, "transaction_date": transaction_date}
    logger.info("resolving %s rate for %s", currency, transaction_date.isoformat(), extra=context)

    days_checked = 0
    candidate = transaction_date
    while days_checked < lookback_days and candidate >= oldest:
        days_checked += 1
        try:
            rate = await provider.get_rate(candidate, currency)
        except TransientLookupFailure as e:
            logger.warning(
                "rate lookup failed for %s on %s: %s",
                currency,
                candidate.isoformat(),
                e,
                extra={**context, "rate_date": candidate},
            )
            rate = None
        if rate is not None and rate.is_finite() and rate > 0:
            logger.info(
                "resolved %s rate %s from %s after %d lookup(s)",
                currency,
                rate,
                candidate.isoformat(),
                days_checked,
                extra={**context, "rate_date": candidate, "days_checked": days_checked},
            )
            return ResolvedRate(
                currency=currency,
                rate=rate,
                rate_date=candidate,
                requested_date=transaction_date,
            )
        logger.debug("no %s rate on %s", currency, candidate.isoformat())
        candidate -= timedelta(days=1)

    logger.info(
        "no %s rate found in %d day window",
        currency,
        days_checked,
        extra={**context, "days_checked": days_checked},
    )
    raise NoRateFound(currency, days_checked)
