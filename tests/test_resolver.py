import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import TODAY, RecordingProvider
from expense_fx.services.rates.errors import (
    DateTooOld,
    FailureKind,
    FutureDateRejected,
    NoRateFound,
    ProviderNotConfigured,
)
from expense_fx.services.rates.resolver import check_window, resolve_rate


def _resolve(day, currency, provider, **kwargs):
    kwargs.setdefault("today", TODAY)
    return asyncio.run(resolve_rate(day, currency, provider, **kwargs))


def test_inr_needs_no_lookup():
    provider = RecordingProvider()
    assert _resolve(TODAY, "INR", provider) is None
    assert _resolve(TODAY + timedelta(days=30), "inr", provider) is None
    assert provider.calls == []


def test_future_date_rejected_without_lookup():
    provider = RecordingProvider({(TODAY, "USD"): "83.5"})
    with pytest.raises(FutureDateRejected) as exc:
        _resolve(TODAY + timedelta(days=1), "USD", provider)
    assert exc.value.kind is FailureKind.FUTURE_DATE_REJECTED
    assert exc.value.message == "Cannot fetch rates for future dates."
    assert provider.calls == []


def test_date_older_than_window_rejected_without_lookup():
    provider = RecordingProvider()
    with pytest.raises(DateTooOld) as exc:
        _resolve(TODAY - timedelta(days=366), "USD", provider)
    assert "older than 365 days" in exc.value.message
    assert provider.calls == []


def test_oldest_allowed_day_is_searched_once():
    oldest = TODAY - timedelta(days=365)
    provider = RecordingProvider()
    with pytest.raises(NoRateFound) as exc:
        _resolve(oldest, "USD", provider)
    assert provider.calls == [(oldest, "USD")]
    assert exc.value.days_checked == 1


def test_exact_date_rate():
    provider = RecordingProvider({(TODAY, "USD"): "83.10"})
    resolved = _resolve(TODAY, "USD", provider)
    assert resolved.rate == Decimal("83.10")
    assert resolved.rate_date == TODAY
    assert not resolved.is_fallback
    assert provider.calls == [(TODAY, "USD")]


def test_fallback_stops_at_nearest_earlier_rate():
    day = TODAY - timedelta(days=10)
    provider = RecordingProvider(
        {
            (day - timedelta(days=2), "EUR"): "90.25",
            (day - timedelta(days=5), "EUR"): "89.00",
            (day + timedelta(days=1), "EUR"): "91.00",
        }
    )
    resolved = _resolve(day, "eur", provider)
    assert resolved.currency == "EUR"
    assert resolved.rate == Decimal("90.25")
    assert resolved.rate_date == day - timedelta(days=2)
    assert resolved.is_fallback
    assert [d for d, _ in provider.calls] == [day, day - timedelta(days=1), day - timedelta(days=2)]


def test_exhausted_window_checks_every_day_once():
    provider = RecordingProvider()
    with pytest.raises(NoRateFound) as exc:
        _resolve(TODAY, "USD", provider)
    days = [d for d, _ in provider.calls]
    assert len(days) == 365
    assert days[0] == TODAY
    assert days[-1] == TODAY - timedelta(days=364)
    assert len(set(days)) == 365
    assert exc.value.days_checked == 365
    assert exc.value.message == "No recent rate found. Please enter manually."


def test_search_never_goes_past_oldest_allowed_date():
    day = TODAY - timedelta(days=360)
    provider = RecordingProvider()
    with pytest.raises(NoRateFound):
        _resolve(day, "USD", provider)
    assert min(d for d, _ in provider.calls) == TODAY - timedelta(days=365)
    assert len(provider.calls) == 6


def test_transient_failures_are_skipped():
    provider = RecordingProvider(
        {(TODAY, "USD"): "83.00", (TODAY - timedelta(days=2), "USD"): "82.50"},
        failures=[TODAY, TODAY - timedelta(days=1)],
    )
    resolved = _resolve(TODAY, "USD", provider)
    assert resolved.rate_date == TODAY - timedelta(days=2)
    assert len(provider.calls) == 3


def test_non_positive_rate_is_not_usable():
    provider = RecordingProvider(
        {(TODAY, "USD"): "0", (TODAY - timedelta(days=1), "USD"): "-1", (TODAY - timedelta(days=2), "USD"): "82"}
    )
    resolved = _resolve(TODAY, "USD", provider)
    assert resolved.rate == Decimal("82")


def test_unconfigured_provider_fails_without_lookup():
    provider = RecordingProvider({(TODAY, "USD"): "83"}, configured=False)
    with pytest.raises(ProviderNotConfigured):
        _resolve(TODAY, "USD", provider)
    assert provider.calls == []


def test_lookback_window_is_configurable():
    provider = RecordingProvider()
    with pytest.raises(NoRateFound) as exc:
        _resolve(TODAY, "USD", provider, lookback_days=7)
    assert exc.value.days_checked == 7
    with pytest.raises(DateTooOld):
        _resolve(TODAY - timedelta(days=8), "USD", provider, lookback_days=7)


def test_check_window_bounds():
    check_window(TODAY, TODAY)
    check_window(TODAY - timedelta(days=365), TODAY)
    with pytest.raises(FutureDateRejected):
        check_window(TODAY + timedelta(days=1), TODAY)
    with pytest.raises(DateTooOld):
        check_window(TODAY - timedelta(days=366), TODAY)


@pytest.mark.parametrize("code", ["", "US", "DOLLAR", "U5D"])
def test_malformed_currency_code_rejected_without_lookup(code):
    provider = RecordingProvider()
    with pytest.raises(ValueError):
        _resolve(TODAY, code, provider)
    assert provider.calls == []
