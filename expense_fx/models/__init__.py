"""Pydantic domain models for the expense conversion service."""

from .constants import BASE_CURRENCY, DEFAULT_LOOKBACK_DAYS  # re-export
from .conversion import (
    ConversionDetailsOut,
    ConversionOut,
    ConversionRequest,
    ResolvedRateOut,
)
from .expense import ExpenseIn, ExpenseOut

__all__ = [
    "BASE_CURRENCY",
    "DEFAULT_LOOKBACK_DAYS",
    "ConversionDetailsOut",
    "ConversionOut",
    "ConversionRequest",
    "ResolvedRateOut",
    "ExpenseIn",
    "ExpenseOut",
]
