from __future__ import annotations

import logging

import pytest

from catalog_pricing.engine.currency import (
    CurrencyInfo,
    ExchangeRates,
    convert_currency,
    convert_or_passthrough,
    detect_currency,
)
from catalog_pricing.engine.exceptions import UnknownCurrency
from catalog_pricing.engine.formatting import currency_symbol, format_currency
from catalog_pricing.pricing.models import PricingRecord


def make_rates() -> ExchangeRates:
    """Build a small two-currency table for isolated conversions."""
    return ExchangeRates(
        {
            "USD": CurrencyInfo(code="USD", rate=1.0, symbol="$", name="US Dollar"),
            "EUR": CurrencyInfo(code="EUR", rate=0.5, symbol="€", name="Euro"),
        },
        published_at="2024-01-01",
    )


def test_convert_usd_to_eur() -> None:
    """Convert through the base currency with the default table."""
    assert convert_currency(100, "USD", "EUR") == pytest.approx(85.0)


def test_convert_is_case_insensitive() -> None:
    """Accept lower-case codes on both sides."""
    assert convert_currency(10, "eur", "usd", make_rates()) == pytest.approx(20.0)


def test_identity_conversion_returns_amount_unchanged() -> None:
    """Skip the table entirely when both codes match, even unknown ones."""
    assert convert_currency(42.5, "XYZ", "XYZ") == 42.5
    assert convert_currency(42.5, "EUR", "EUR") == 42.5


def test_round_trip_stays_within_tolerance() -> None:
    """Come back to the original amount after converting there and back."""
    for code in ("EUR", "JPY", "KRW", "INR"):
        there = convert_currency(123.45, "USD", code)
        back = convert_currency(there, code, "USD")
        assert back == pytest.approx(123.45, rel=1e-9)


def test_unknown_currency_raises() -> None:
    """Raise a structured error for codes missing from the table."""
    with pytest.raises(UnknownCurrency) as exc_info:
        convert_currency(1, "XYZ", "USD")

    assert exc_info.value.code == "UNKNOWN_CURRENCY"
    assert exc_info.value.currency == "XYZ"


def test_passthrough_keeps_amount_and_logs_warning(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Fall back to the unconverted amount when a code is unknown."""
    with caplog.at_level(logging.WARNING):
        amount, converted = convert_or_passthrough(10, "XYZ", "USD")

    assert amount == 10
    assert not converted
    assert any(
        getattr(record, "event", None) == "currency_conversion_skipped"
        for record in caplog.records
    )


def test_detect_currency_defaults_to_base() -> None:
    """Default missing or empty currency fields to USD."""
    assert detect_currency(None) == "USD"
    assert detect_currency(PricingRecord(flat=1)) == "USD"
    assert detect_currency(PricingRecord(currency=" ", flat=1)) == "USD"


def test_detect_currency_normalizes_code() -> None:
    """Upper-case the code and drop stray punctuation."""
    assert detect_currency(PricingRecord(currency=" eur.", flat=1)) == "EUR"
    assert detect_currency(PricingRecord(currency="xyz", flat=1)) == "XYZ"


def test_rate_table_requires_base_currency() -> None:
    """Reject tables that do not carry their own base currency."""
    with pytest.raises(ValueError):
        ExchangeRates(
            {"EUR": CurrencyInfo(code="EUR", rate=0.5, symbol="€", name="Euro")}
        )


def test_rate_table_rejects_non_positive_rates() -> None:
    """Reject zero or negative rates at construction time."""
    with pytest.raises(ValueError):
        ExchangeRates(
            {
                "USD": CurrencyInfo(code="USD", rate=1.0, symbol="$", name="US"),
                "EUR": CurrencyInfo(code="EUR", rate=0.0, symbol="€", name="Euro"),
            }
        )


def test_currency_symbol_lookup() -> None:
    """Return symbols for known codes and the code itself otherwise."""
    assert currency_symbol(None) == "$"
    assert currency_symbol("EUR") == "€"
    assert currency_symbol("cad") == "C$"
    assert currency_symbol("XYZ") == "XYZ"


def test_format_currency_precision_bands() -> None:
    """Pick the number of decimals from the amount's magnitude."""
    assert format_currency(0.005) == "$0.005000"
    assert format_currency(0.5) == "$0.500"
    assert format_currency(12.5) == "$12.50"
    assert format_currency(20, "EUR") == "€20.00"


def test_format_currency_zero_decimal_currencies() -> None:
    """Round yen and won to whole units with thousands separators."""
    assert format_currency(1234567.4, "JPY") == "¥1,234,567"
    assert format_currency(2360.6, "KRW") == "₩2,361"


def test_format_currency_placeholder_for_missing_amounts() -> None:
    """Render None, NaN and infinities as the placeholder dash."""
    assert format_currency(None) == "—"
    assert format_currency(float("nan")) == "—"
    assert format_currency(float("inf"), "KRW") == "—"
    assert format_currency(float("-inf"), "JPY") == "—"
    assert format_currency(float("inf")) == "—"


def test_format_currency_unknown_code_uses_code_as_symbol() -> None:
    """Prefix unknown currencies with their raw code."""
    assert format_currency(3, "XYZ") == "XYZ3.00"


def test_rate_table_accessors() -> None:
    """Expose symbol, name and decimals per code."""
    rates = make_rates()

    assert rates.symbol("eur") == "€"
    assert rates.name("USD") == "US Dollar"
    assert rates.decimals("EUR") == 2
    assert "EUR" in rates
    assert "GBP" not in rates
    assert rates.published_at == "2024-01-01"
