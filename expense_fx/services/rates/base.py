from __future__ import annotations

"""Rate provider abstraction.

A provider answers one question: what was the INR rate for 1 unit of a currency
on a given calendar day. The resolver drives the look-back search on top of it.
"""
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional


class RateProvider(ABC):
    base_currency: str = "INR"
    #: False when the provider cannot make lookups at all (e.g. missing API key)
    configured: bool = True

    @abstractmethod
    async def get_rate(self, on: date, quote_currency: str) -> Optional[Decimal]:
        """Return INR per 1 unit of quote_currency on ``on``, or None if no rate.

        Raises TransientLookupFailure when the lookup itself failed.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
