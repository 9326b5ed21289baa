from __future__ import annotations

import re

from catalog_pricing.engine.currency import DEFAULT_EXCHANGE_RATES, ExchangeRates
from catalog_pricing.pricing.models import PricingRecord

_NUMBER = re.compile(r"(?<![\w.\-])(\d+(?:,\d{3})*(?:\.\d+)?|\.\d+)")
_CODE = re.compile(r"\b([A-Za-z]{3})\b")
_UNIT = re.compile(r"(?:per|/)\s*(.+)$", re.IGNORECASE)


def _detect_code(text: str, rates: ExchangeRates) -> str | None:
    for match in _CODE.finditer(text):
        if match.group(1) in rates:
            return match.group(1).upper()
    # longest symbols first so "C$" wins over "$"
    infos = sorted(
        (rates.info(code) for code in rates.codes()),
        key=lambda info: len(info.symbol),
        reverse=True,
    )
    for info in infos:
        if info.symbol in text:
            # "$" alone means the base currency, not CAD/AUD
            if info.symbol == "$":
                return rates.base
            return info.code
    return None


def parse_pricing_text(
    text: str | None,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
) -> PricingRecord | None:
    """Parse free text such as "$0.002 per 1k tokens" into a record.

    Token-denominated prices fill ``input``; everything else is ``flat``.
    Returns None when the text carries no number.
    """
    if not text:
        return None
    number = _NUMBER.search(text)
    if number is None:
        return None
    amount = float(number.group(1).replace(",", ""))

    unit_match = _UNIT.search(text[number.end():])
    unit = unit_match.group(1).strip().rstrip(".") if unit_match else None
    if unit:
        unit = f"per {unit}"

    currency = _detect_code(text, rates)
    if unit and "token" in unit.lower():
        return PricingRecord(currency=currency, unit=unit, input=amount)
    return PricingRecord(currency=currency, unit=unit, flat=amount)
