"""Domain constants and currency-code validation.

Kept lightweight: the rate provider decides which currencies it can actually
quote, so only the code shape is validated here.
"""

import re

BASE_CURRENCY = "INR"
DEFAULT_LOOKBACK_DAYS = 365

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def normalize_currency(value: str) -> str:
    code = (value or "").strip().upper()
    if not _CURRENCY_CODE.match(code):
        raise ValueError("currency must be a 3-letter code")
    return code
