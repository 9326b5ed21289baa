from __future__ import annotations

import math

from catalog_pricing.constants import PLACEHOLDER
from catalog_pricing.engine.currency import DEFAULT_EXCHANGE_RATES, ExchangeRates


def currency_symbol(
    code: str | None,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
) -> str:
    """Return the display symbol for ``code``, or the code itself if unknown."""
    if not code:
        return rates.symbol(rates.base)
    return rates.symbol(code) if code in rates else code


def format_currency(
    amount: float | None,
    code: str = "USD",
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
) -> str:
    """Render an amount with a symbol and magnitude-dependent precision.

    Missing and non-finite amounts render as the placeholder.
    """
    if amount is None or not math.isfinite(amount):
        return PLACEHOLDER

    symbol = currency_symbol(code, rates)
    if code in rates and rates.decimals(code) == 0:
        return f"{symbol}{round(amount):,}"
    if amount < 0.01:
        return f"{symbol}{amount:.6f}"
    if amount < 1:
        return f"{symbol}{amount:.3f}"
    return f"{symbol}{amount:.2f}"
