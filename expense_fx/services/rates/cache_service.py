from __future__ import annotations

"""Rate cache wrapping any RateProvider.

Purpose:
    Historical rates for a past (date, currency) pair do not change, so repeated
    form edits (switching currency back and forth, re-opening an expense) should
    not repeat the same backward search over the network.

Design:
    - Wraps an underlying RateProvider and exposes the same get_rate() API, so the
      resolver cannot tell the difference.
    - Only successful lookups are cached, for settings.rates_cache_ttl_seconds.
      Misses and transient failures always go back to the provider.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, Optional, Tuple

from .base import RateProvider


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _CacheEntry:
    rate: Decimal
    fetched_at: datetime


class CachedRateProvider(RateProvider):
    def __init__(
        self,
        provider: RateProvider,
        ttl_seconds: int,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._underlying = provider
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._cache: Dict[Tuple[date, str], _CacheEntry] = {}

    @property
    def configured(self) -> bool:  # type: ignore[override]
        return self._underlying.configured

    # Internal --------------------------------------------------
    def _is_entry_valid(self, entry: _CacheEntry) -> bool:
        return self._clock() - entry.fetched_at < self._ttl

    # Public API -----------------------------------------------
    async def get_rate(self, on: date, quote_currency: str) -> Optional[Decimal]:  # type: ignore[override]
        key = (on, quote_currency.upper())
        entry = self._cache.get(key)
        if entry and self._is_entry_valid(entry):
            return entry.rate
        rate = await self._underlying.get_rate(on, quote_currency)
        if rate is not None:
            self._cache[key] = _CacheEntry(rate=rate, fetched_at=self._clock())
        else:
            self._cache.pop(key, None)
        return rate

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    async def aclose(self) -> None:
        await self._underlying.aclose()
