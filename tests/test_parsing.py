from __future__ import annotations

import pytest

from catalog_pricing.engine.parsing import parse_pricing_text


def test_parse_token_price_with_dollar_symbol() -> None:
    """Read a per-1K-token quote into the input field."""
    record = parse_pricing_text("$0.002 per 1k tokens")

    assert record is not None
    assert record.currency == "USD"
    assert record.unit == "per 1k tokens"
    assert record.input == pytest.approx(0.002)
    assert record.flat is None


def test_parse_subscription_in_euros() -> None:
    """Read a euro monthly fee into the flat field."""
    record = parse_pricing_text("€20 per month")

    assert record is not None
    assert record.currency == "EUR"
    assert record.unit == "per month"
    assert record.flat == 20


def test_parse_prefers_explicit_currency_code() -> None:
    """Use a three-letter code and accept thousands separators."""
    record = parse_pricing_text("1,200 JPY / year")

    assert record is not None
    assert record.currency == "JPY"
    assert record.flat == 1200
    assert record.unit == "per year"


def test_parse_ignores_digits_inside_model_names() -> None:
    """Skip version digits such as the 4 in GPT-4."""
    record = parse_pricing_text("GPT-4 costs $30 / 1M tokens")

    assert record is not None
    assert record.input == 30
    assert record.unit == "per 1M tokens"


def test_parse_longest_symbol_wins() -> None:
    """Match "C$" as Canadian dollars rather than the bare dollar sign."""
    record = parse_pricing_text("C$15 per month")

    assert record is not None
    assert record.currency == "CAD"


def test_parse_without_number_returns_none() -> None:
    """Return None for text with no price in it."""
    assert parse_pricing_text("Contact sales") is None
    assert parse_pricing_text("") is None
    assert parse_pricing_text(None) is None
