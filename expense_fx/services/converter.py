from __future__ import annotations

"""Per-form currency conversion state.

One CurrencyConverter belongs to one expense form. It owns the exchange-rate
field, the status line and the derived INR amount, and follows these rules:

- Date or currency edits restart automatic resolution.
- Amount edits only recompute the conversion; they never trigger a lookup.
- A rate typed by the user wins. It stays until the date or currency changes.
- A resolution whose (date, currency, generation) fingerprint no longer
  matches the form when it completes is discarded.

Window-level failures never escape: they become a state plus a status message,
and the user can always type a rate instead.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional

from expense_fx.models.constants import (
    BASE_CURRENCY,
    DEFAULT_LOOKBACK_DAYS,
    normalize_currency,
)
from expense_fx.models.conversion import ConversionDetailsOut, ConversionOut
from expense_fx.services.money import Number, format_inr, to_positive_decimal
from expense_fx.services.rates.base import RateProvider
from expense_fx.services.rates.conversion import (
    ConversionDetails,
    build_conversion_details,
    convert,
)
from expense_fx.services.rates.errors import (
    FailureKind,
    InvalidManualRate,
    RateResolutionError,
)
from expense_fx.services.rates.resolver import resolve_rate

logger = logging.getLogger("expense_fx.converter")

FETCHING_MESSAGE = "Fetching rate..."


class ConversionState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    RESOLVED_EXACT = "resolved_exact"
    RESOLVED_FALLBACK = "resolved_fallback"
    FAILED_FUTURE = "failed_future"
    FAILED_TOO_OLD = "failed_too_old"
    FAILED_NO_RATE = "failed_no_rate"
    FAILED_NOT_CONFIGURED = "failed_not_configured"
    MANUAL_OVERRIDE = "manual_override"


_FAILURE_STATES = {
    FailureKind.FUTURE_DATE_REJECTED: ConversionState.FAILED_FUTURE,
    FailureKind.DATE_TOO_OLD: ConversionState.FAILED_TOO_OLD,
    FailureKind.NO_RATE_FOUND: ConversionState.FAILED_NO_RATE,
    FailureKind.NOT_CONFIGURED: ConversionState.FAILED_NOT_CONFIGURED,
}


def fallback_message(rate_date: date) -> str:
    return f"Rate from {rate_date.isoformat()}"


def parse_manual_rate(text: Optional[Number]) -> Decimal:
    rate = to_positive_decimal(text)
    if rate is None:
        raise InvalidManualRate(f"invalid exchange rate {text!r}")
    return rate


@dataclass(frozen=True)
class Fingerprint:
    transaction_date: Optional[date]
    currency: str
    generation: int


_UNSET: Any = object()


class CurrencyConverter:
    def __init__(
        self,
        provider: RateProvider,
        *,
        transaction_date: Optional[date] = None,
        currency: str = BASE_CURRENCY,
        amount: Optional[Number] = None,
        initial_exchange_rate: Optional[Number] = None,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        today: Callable[[], date] = date.today,
    ):
        self._provider = provider
        self._lookback_days = lookback_days
        self._today = today
        self._generation = 0
        self._in_flight: Optional[Fingerprint] = None

        self.transaction_date = transaction_date
        self.currency = normalize_currency(currency)
        self.amount: Optional[Number] = amount
        self.exchange_rate = ""
        self.rate_date: Optional[date] = None
        self.status_message: Optional[str] = None
        self.state = ConversionState.IDLE

        # Editing a saved expense: keep its stored rate instead of fetching on open.
        initial_text = "" if initial_exchange_rate is None else str(initial_exchange_rate).strip()
        if initial_text and self.currency != BASE_CURRENCY:
            self.exchange_rate = initial_text
            self.state = ConversionState.MANUAL_OVERRIDE
        else:
            self._restart()

    # Internal --------------------------------------------------
    def _restart(self) -> None:
        self._generation += 1
        self.exchange_rate = ""
        self.rate_date = None
        if self.currency == BASE_CURRENCY or self.transaction_date is None:
            self.state = ConversionState.IDLE
            self.status_message = None
        else:
            self.state = ConversionState.RESOLVING
            self.status_message = FETCHING_MESSAGE

    def _is_current(self, token: Fingerprint) -> bool:
        return token == self.fingerprint and self.state is ConversionState.RESOLVING

    # Inputs ----------------------------------------------------
    @property
    def fingerprint(self) -> Fingerprint:
        return Fingerprint(self.transaction_date, self.currency, self._generation)

    def set_date(self, transaction_date: Optional[date]) -> bool:
        """Record a date edit. Returns True if resolution was restarted."""
        if transaction_date == self.transaction_date:
            return False
        self.transaction_date = transaction_date
        self._restart()
        return True

    def set_currency(self, currency: str) -> bool:
        """Record a currency edit. Returns True if resolution was restarted."""
        code = normalize_currency(currency)
        if code == self.currency:
            return False
        self.currency = code
        self._restart()
        return True

    def set_amount(self, amount: Optional[Number]) -> None:
        self.amount = amount

    def set_exchange_rate(self, text: Optional[Number]) -> None:
        """User typed into the rate field."""
        if self.currency == BASE_CURRENCY:
            return
        # Bumping the generation makes any in-flight lookup stale.
        self._generation += 1
        self.exchange_rate = "" if text is None else str(text).strip()
        self.rate_date = None
        self.status_message = None
        self.state = ConversionState.MANUAL_OVERRIDE

    async def update(
        self,
        *,
        transaction_date: Any = _UNSET,
        currency: Any = _UNSET,
        amount: Any = _UNSET,
        exchange_rate: Any = _UNSET,
    ) -> ConversionState:
        """Apply a batch of form edits, then resolve if date or currency changed."""
        if transaction_date is not _UNSET:
            self.set_date(transaction_date)
        if currency is not _UNSET:
            self.set_currency(currency)
        if amount is not _UNSET:
            self.set_amount(amount)
        if exchange_rate is not _UNSET:
            self.set_exchange_rate(exchange_rate)
        if self.state is ConversionState.RESOLVING:
            await self.resolve()
        return self.state

    # Resolution ------------------------------------------------
    async def resolve(self) -> ConversionState:
        if self.state is not ConversionState.RESOLVING:
            return self.state
        token = self.fingerprint
        if token == self._in_flight:
            # already being searched; amount-only edits must not start a second search
            return self.state
        self._in_flight = token
        try:
            return await self._resolve_for(token)
        finally:
            if self._in_flight == token:
                self._in_flight = None

    async def _resolve_for(self, token: Fingerprint) -> ConversionState:
        try:
            resolved = await resolve_rate(
                token.transaction_date,  # type: ignore[arg-type]  # RESOLVING implies a date
                token.currency,
                self._provider,
                today=self._today(),
                lookback_days=self._lookback_days,
            )
        except RateResolutionError as e:
            if not self._is_current(token):
                logger.debug("discarding stale %s failure for %s", e.kind.value, token)
                return self.state
            self.state = _FAILURE_STATES[e.kind]
            self.status_message = e.message
            self.exchange_rate = ""
            return self.state

        if not self._is_current(token):
            logger.debug("discarding stale rate for %s", token)
            return self.state
        if resolved is None:  # pragma: no cover - INR never reaches RESOLVING
            self.state = ConversionState.IDLE
            self.status_message = None
            return self.state
        self.exchange_rate = str(resolved.rate)
        self.rate_date = resolved.rate_date
        if resolved.is_fallback:
            self.state = ConversionState.RESOLVED_FALLBACK
            self.status_message = fallback_message(resolved.rate_date)
        else:
            self.state = ConversionState.RESOLVED_EXACT
            self.status_message = None
        return self.state

    # Derived ---------------------------------------------------
    @property
    def is_fetching_rate(self) -> bool:
        return self.state is ConversionState.RESOLVING

    @property
    def resolved_rate(self) -> Optional[Decimal]:
        if self.currency == BASE_CURRENCY:
            return None
        try:
            return parse_manual_rate(self.exchange_rate)
        except InvalidManualRate:
            return None

    @property
    def converted_amount(self) -> Optional[Decimal]:
        if self.currency == BASE_CURRENCY:
            return None
        return convert(self.amount, self.resolved_rate)

    @property
    def conversion_details(self) -> Optional[ConversionDetails]:
        return build_conversion_details(self.currency, self.amount, self.resolved_rate)

    @property
    def preview(self) -> Optional[str]:
        """Formatted INR amount, shown only while no status message is pending."""
        converted = self.converted_amount
        if converted is None or self.status_message is not None:
            return None
        return f"≈ {format_inr(converted)}"

    def view(self) -> ConversionOut:
        """What the expense form renders: rate field, comment line and conversion data."""
        details = self.conversion_details
        return ConversionOut(
            state=self.state.value,
            exchange_rate=self.exchange_rate,
            conversion_result=self.status_message,
            conversion_data=ConversionDetailsOut(**details.as_record()) if details else None,
            is_fetching_rate=self.is_fetching_rate,
            resolved_rate_date=self.rate_date,
            converted_amount_inr=self.converted_amount,
            preview=self.preview,
        )
