from __future__ import annotations

"""Failure taxonomy for rate resolution.

Window-level failures (future date, too old, no rate, provider not configured)
are raised by the resolver and mapped to a status message by the converter.
Per-day failures (TransientLookupFailure) never leave the search loop.
"""
from datetime import date
from enum import Enum


class FailureKind(str, Enum):
    FUTURE_DATE_REJECTED = "future_date_rejected"
    DATE_TOO_OLD = "date_too_old"
    NO_RATE_FOUND = "no_rate_found"
    NOT_CONFIGURED = "not_configured"


class RateResolutionError(Exception):
    """Base for failures that end a resolution attempt."""

    kind: FailureKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FutureDateRejected(RateResolutionError):
    kind = FailureKind.FUTURE_DATE_REJECTED

    def __init__(self, transaction_date: date):
        super().__init__("Cannot fetch rates for future dates.")
        self.transaction_date = transaction_date


class DateTooOld(RateResolutionError):
    kind = FailureKind.DATE_TOO_OLD

    def __init__(self, transaction_date: date, lookback_days: int):
        super().__init__(
            f"Cannot fetch rates older than {lookback_days} days. Please enter manually."
        )
        self.transaction_date = transaction_date
        self.lookback_days = lookback_days


class NoRateFound(RateResolutionError):
    kind = FailureKind.NO_RATE_FOUND

    def __init__(self, currency: str, days_checked: int):
        super().__init__("No recent rate found. Please enter manually.")
        self.currency = currency
        self.days_checked = days_checked


class ProviderNotConfigured(RateResolutionError):
    kind = FailureKind.NOT_CONFIGURED

    def __init__(self) -> None:
        super().__init__("Currency API key not configured. Please enter manually.")


class TransientLookupFailure(Exception):
    """A single day's lookup failed; the search moves on to the previous day."""


class InvalidManualRate(ValueError):
    """User-typed rate is not a positive finite number."""
