from __future__ import annotations

"""Concrete rate providers and factory.

'static' serves rates from an in-memory table keyed by (date, currency); it is the
offline provider and the one tests build on. 'currencyapi' queries the
currencyapi.com v3 historical endpoint.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple

import httpx

from expense_fx.core.config import Settings
from expense_fx.services.http_client import HttpError, get_json
from expense_fx.services.money import to_positive_decimal
from .base import RateProvider
from .errors import TransientLookupFailure

logger = logging.getLogger("expense_fx.rates.providers")

RateKey = Tuple[date, str]


class StaticRateProvider(RateProvider):
    def __init__(self, rates: Optional[Mapping[RateKey, Decimal | float | str]] = None):
        self._rates: Dict[RateKey, Decimal] = {}
        for (day, currency), value in (rates or {}).items():
            self.set_rate(day, currency, value)

    def set_rate(self, day: date, currency: str, value: Decimal | float | str) -> None:
        self._rates[(day, currency.upper())] = Decimal(str(value))

    async def get_rate(self, on: date, quote_currency: str) -> Optional[Decimal]:  # type: ignore[override]
        return self._rates.get((on, quote_currency.upper()))


class CurrencyApiRateProvider(RateProvider):
    """currencyapi.com historical rates, authenticated by a static ``apikey`` header.

    Response shape: ``{"data": {"INR": {"code": "INR", "value": 83.5}}}``.
    Any transport error, non-2xx status or malformed body is reported as a
    TransientLookupFailure so the resolver can move on to the previous day.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        url: str = "https://api.currencyapi.com/v3/historical",
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
        configured: Optional[bool] = None,
    ):
        self._api_key = api_key or ""
        self._url = url
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self.configured = bool(self._api_key) if configured is None else configured

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def get_rate(self, on: date, quote_currency: str) -> Optional[Decimal]:  # type: ignore[override]
        params = {
            "date": on.isoformat(),
            "base_currency": quote_currency.upper(),
            "currencies": self.base_currency,
        }
        try:
            data = await get_json(
                self._get_client(),
                self._url,
                params=params,
                headers={"apikey": self._api_key},
                timeout=self._timeout,
            )
        except HttpError as e:
            raise TransientLookupFailure(str(e)) from e
        quotes = data.get("data")
        if not isinstance(quotes, dict):
            raise TransientLookupFailure(f"malformed rate payload for {on.isoformat()}")
        entry = quotes.get(self.base_currency)
        if not isinstance(entry, dict):
            return None
        return to_positive_decimal(entry.get("value"))

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def make_rate_provider(settings: Settings) -> RateProvider:
    kind = settings.rate_provider
    if kind == "static":
        return StaticRateProvider()
    if kind == "currencyapi":
        return CurrencyApiRateProvider(
            settings.currency_api_key,
            url=str(settings.currency_api_url),
            timeout=settings.http_timeout_seconds,
            configured=settings.api_key_configured,
        )
    raise ValueError(f"Unknown rate provider kind '{kind}'")
