from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from catalog_pricing.constants import BASE_CURRENCY, ZERO_DECIMAL_CURRENCIES
from catalog_pricing.engine.exceptions import UnknownCurrency
from catalog_pricing.pricing.models import PricingRecord

logger = logging.getLogger(__name__)

_NON_LETTERS = re.compile(r"[^A-Z]")


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    # units of this currency per one unit of the base currency
    rate: float
    symbol: str
    name: str
    decimals: int = 2


class ExchangeRates:
    """Read-only rate table keyed by currency code, relative to ``base``."""

    def __init__(
        self,
        currencies: Mapping[str, CurrencyInfo],
        *,
        base: str = BASE_CURRENCY,
        published_at: str | None = None,
    ) -> None:
        table = {code.upper(): info for code, info in currencies.items()}
        if base.upper() not in table:
            raise ValueError(f"Base currency '{base}' missing from rate table")
        for info in table.values():
            if info.rate <= 0:
                raise ValueError(
                    f"Exchange rate for '{info.code}' must be positive"
                )
        self._currencies = MappingProxyType(table)
        self._base = base.upper()
        self._published_at = published_at

    @property
    def base(self) -> str:
        return self._base

    @property
    def published_at(self) -> str | None:
        return self._published_at

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.upper() in self._currencies

    def codes(self) -> list[str]:
        return list(self._currencies)

    def get(self, code: str | None) -> CurrencyInfo | None:
        if not code:
            return None
        return self._currencies.get(code.upper())

    def info(self, code: str) -> CurrencyInfo:
        info = self.get(code)
        if info is None:
            raise UnknownCurrency(code)
        return info

    def rate(self, code: str) -> float:
        return self.info(code).rate

    def symbol(self, code: str) -> str:
        return self.info(code).symbol

    def name(self, code: str) -> str:
        return self.info(code).name

    def decimals(self, code: str) -> int:
        return self.info(code).decimals


def _default_currencies() -> dict[str, CurrencyInfo]:
    rows = (
        ("USD", 1.0, "$", "US Dollar"),
        ("EUR", 0.85, "€", "Euro"),
        ("GBP", 0.73, "£", "British Pound"),
        ("JPY", 110.0, "¥", "Japanese Yen"),
        ("CNY", 6.45, "¥", "Chinese Yuan"),
        ("INR", 74.5, "₹", "Indian Rupee"),
        ("CAD", 1.25, "C$", "Canadian Dollar"),
        ("AUD", 1.35, "A$", "Australian Dollar"),
        ("CHF", 0.92, "₣", "Swiss Franc"),
        ("KRW", 1180.0, "₩", "Korean Won"),
    )
    return {
        code: CurrencyInfo(
            code=code,
            rate=rate,
            symbol=symbol,
            name=name,
            decimals=0 if code in ZERO_DECIMAL_CURRENCIES else 2,
        )
        for code, rate, symbol, name in rows
    }


DEFAULT_EXCHANGE_RATES = ExchangeRates(_default_currencies())


def detect_currency(record: PricingRecord | None) -> str:
    """Return the record's currency code, defaulting to the base currency."""
    if record is None or not record.currency:
        return BASE_CURRENCY
    code = _NON_LETTERS.sub("", record.currency.upper())
    return code or BASE_CURRENCY


def convert_currency(
    amount: float,
    from_code: str,
    to_code: str,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
) -> float:
    """Convert ``amount`` between currencies via the table's base currency.

    Raises ``UnknownCurrency`` when either code is missing from ``rates``.
    """
    if from_code.upper() == to_code.upper():
        return amount
    return amount / rates.rate(from_code) * rates.rate(to_code)


def convert_or_passthrough(
    amount: float,
    from_code: str,
    to_code: str,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
) -> tuple[float, bool]:
    """Convert, or fall back to the unconverted amount on unknown codes.

    Returns the amount and whether a conversion actually happened.
    """
    if from_code.upper() == to_code.upper():
        return amount, True
    try:
        return convert_currency(amount, from_code, to_code, rates), True
    except UnknownCurrency as exc:
        logger.warning(
            "currency_conversion_skipped",
            extra={
                "event": "currency_conversion_skipped",
                "currency": from_code,
                "target_currency": to_code,
                "error_code": exc.code,
            },
        )
        return amount, False
