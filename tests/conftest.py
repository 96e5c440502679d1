from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from expense_fx.services.rates.base import RateProvider
from expense_fx.services.rates.errors import TransientLookupFailure

TODAY = date(2025, 6, 15)


class RecordingProvider(RateProvider):
    """In-memory provider that records every lookup it receives."""

    def __init__(
        self,
        rates: Optional[Dict[Tuple[date, str], object]] = None,
        failures: Iterable[date] = (),
        configured: bool = True,
    ):
        self.rates = {(d, c.upper()): Decimal(str(v)) for (d, c), v in (rates or {}).items()}
        self.failures = set(failures)
        self.configured = configured
        self.calls: List[Tuple[date, str]] = []

    async def get_rate(self, on, quote_currency):
        self.calls.append((on, quote_currency))
        if on in self.failures:
            raise TransientLookupFailure(f"lookup failed for {on}")
        return self.rates.get((on, quote_currency.upper()))


class GatedProvider(RecordingProvider):
    """Holds lookups for ``gate_day`` until ``gate`` is set."""

    def __init__(self, *args, gate_day: date, **kwargs):
        super().__init__(*args, **kwargs)
        self.gate_day = gate_day
        self.gate = asyncio.Event()

    async def get_rate(self, on, quote_currency):
        if on == self.gate_day:
            await self.gate.wait()
        return await super().get_rate(on, quote_currency)
