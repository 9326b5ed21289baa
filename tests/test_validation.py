from __future__ import annotations

from catalog_pricing.engine.validation import (
    StaticReferencePrices,
    fact_check_model_cost,
    reference_key,
    validate_model_cost,
)
from catalog_pricing.pricing.models import PriceRange, PricingRecord, ReferencePrice


def make_reference() -> StaticReferencePrices:
    """Build a reference table with one LLM list price and an alias."""
    return StaticReferencePrices(
        [ReferencePrice(model="gpt-4", input=30, output=60, domain="LLM")],
        aliases={"gpt-4-0613": "gpt-4"},
    )


def test_missing_record_is_invalid_with_low_confidence() -> None:
    """Reject a missing record without raising."""
    verdict = validate_model_cost(None, "Model", "LLM")

    assert not verdict.is_valid
    assert verdict.confidence == "low"
    assert verdict.issues == ("No pricing information available",)


def test_record_without_amounts_is_invalid() -> None:
    """Treat a record with only notes as malformed pricing."""
    verdict = validate_model_cost(PricingRecord(notes="tbd"), "Model", "LLM")

    assert verdict.has_problems


def test_negative_price_is_invalid() -> None:
    """Flag negative amounts with low confidence."""
    record = PricingRecord(input=-1, unit="per 1M tokens")

    verdict = validate_model_cost(record, "Model", "LLM")

    assert not verdict.is_valid
    assert verdict.confidence == "low"
    assert any("Negative input price" in issue for issue in verdict.issues)


def test_plausible_token_price_is_valid() -> None:
    """Accept token prices inside the domain band and suggest the band."""
    record = PricingRecord(input=3, output=15, unit="per 1M tokens")

    verdict = validate_model_cost(record, "Model", "LLM")

    assert verdict.is_valid
    assert verdict.confidence == "high"
    assert verdict.issues == ()
    assert verdict.suggested_range == PriceRange(min=0.001, max=1000.0)


def test_token_price_above_band_is_low_confidence() -> None:
    """Flag per-million prices above the domain maximum."""
    record = PricingRecord(input=2000, unit="per 1M tokens")

    verdict = validate_model_cost(record, "Model", "LLM")

    assert not verdict.is_valid
    assert verdict.confidence == "low"
    assert "unusually high" in verdict.issues[0]


def test_token_price_below_band_is_medium_confidence() -> None:
    """Flag positive per-million prices below the domain minimum."""
    record = PricingRecord(input=1e-10, unit="per token")

    verdict = validate_model_cost(record, "Model", "VLM")

    assert not verdict.is_valid
    assert verdict.confidence == "medium"
    assert "unusually low" in verdict.issues[0]


def test_domains_without_bounds_skip_token_checks() -> None:
    """Only apply token bands to domains that define them."""
    record = PricingRecord(input=2000, unit="per 1M tokens")

    verdict = validate_model_cost(record, "Model", "ImageGen")

    assert verdict.is_valid
    assert verdict.suggested_range is None


def test_output_much_cheaper_than_input_lowers_confidence() -> None:
    """Report a suspicious output price without invalidating the record."""
    record = PricingRecord(input=10, output=0.5, unit="per 1M tokens")

    verdict = validate_model_cost(record, "Model", "LLM")

    assert verdict.is_valid
    assert verdict.confidence == "medium"
    assert not verdict.has_problems
    assert len(verdict.issues) == 1


def test_expensive_monthly_subscription() -> None:
    """Flag monthly plans above the upper bound."""
    record = PricingRecord(flat=1500, unit="per month")

    verdict = validate_model_cost(record, "Model", "LLM")

    assert not verdict.is_valid
    assert verdict.confidence == "medium"
    assert verdict.issues == ("Monthly subscription seems very expensive",)
    assert verdict.suggested_range == PriceRange(min=5.0, max=500.0)


def test_cheap_monthly_subscription() -> None:
    """Flag monthly plans below the lower bound."""
    verdict = validate_model_cost(
        PricingRecord(flat=0.5, unit="month"), "Model", "LLM"
    )

    assert not verdict.is_valid
    assert verdict.issues == ("Monthly subscription seems unusually cheap",)


def test_annual_subscription_uses_twelve_month_band() -> None:
    """Scale the subscription band for yearly plans."""
    verdict = validate_model_cost(
        PricingRecord(flat=1500, unit="per year"), "Model", "LLM"
    )

    assert verdict.is_valid
    assert verdict.suggested_range == PriceRange(min=60.0, max=6000.0)


def test_subscription_bounds_apply_after_conversion() -> None:
    """Compare foreign subscriptions in dollars."""
    verdict = validate_model_cost(
        PricingRecord(flat=110_000, unit="month", currency="JPY"), "Model", "LLM"
    )

    assert verdict.is_valid


def test_unknown_currency_is_reported_not_rejected() -> None:
    """Lower confidence for unknown codes while keeping the record valid."""
    record = PricingRecord(input=1, unit="per 1M tokens", currency="XYZ")

    verdict = validate_model_cost(record, "Model", "LLM")

    assert verdict.is_valid
    assert verdict.confidence == "medium"
    assert "XYZ" in verdict.issues[0]


def test_normalization_overflow_becomes_an_issue() -> None:
    """Turn an implausible magnitude into a low-confidence issue."""
    record = PricingRecord(flat=5e13, unit="per request")

    verdict = validate_model_cost(record, "Model", "Other")

    assert not verdict.is_valid
    assert verdict.confidence == "low"
    assert verdict.issues == (
        "Price magnitude remains implausible after scale correction",
    )


def test_reference_key_normalization() -> None:
    """Lower-case names and keep dots, digits and dashes."""
    assert reference_key("GPT 3.5 Turbo") == "gpt-3.5-turbo"
    assert reference_key("Claude_3/Opus!") == "claude-3-opus"


def test_reference_lookup_with_alias_and_domain() -> None:
    """Resolve aliases and refuse matches from another domain."""
    reference = make_reference()

    assert reference.lookup("GPT-4-0613") is not None
    assert reference.lookup("gpt-4", "LLM") is not None
    assert reference.lookup("gpt-4", "ImageGen") is None
    assert reference.lookup("unknown-model") is None
    assert len(reference) == 1


def test_fact_check_without_reference_is_medium_confidence() -> None:
    """Return a valid, medium-confidence verdict when nothing is known."""
    record = PricingRecord(input=30, output=60, unit="per 1M tokens")

    without_table = fact_check_model_cost("gpt-4", record)
    unknown_model = fact_check_model_cost("mystery", record, make_reference())

    for verdict in (without_table, unknown_model):
        assert verdict.is_valid
        assert verdict.confidence == "medium"
        assert verdict.issues == ()


def test_fact_check_matching_prices() -> None:
    """Keep high confidence when prices match the reference."""
    record = PricingRecord(input=30, output=60, unit="per 1M tokens")

    verdict = fact_check_model_cost("GPT-4", record, make_reference())

    assert verdict.is_valid
    assert verdict.confidence == "high"


def test_fact_check_converts_foreign_prices() -> None:
    """Compare euro prices against dollar references after conversion."""
    record = PricingRecord(input=25.5, output=51, unit="per 1M tokens", currency="EUR")

    verdict = fact_check_model_cost("gpt-4", record, make_reference())

    assert verdict.confidence == "high"


def test_fact_check_outdated_price() -> None:
    """Mark a moderate difference as possibly outdated."""
    record = PricingRecord(input=40, output=60, unit="per 1M tokens")

    verdict = fact_check_model_cost("gpt-4", record, make_reference())

    assert verdict.is_valid
    assert verdict.confidence == "medium"
    assert verdict.issues == (
        "Input cost may be outdated (expected ~$30 per 1M tokens)",
    )


def test_fact_check_significant_difference() -> None:
    """Reject prices far from the reference with low confidence."""
    record = PricingRecord(input=100, output=60, unit="per 1M tokens")

    verdict = fact_check_model_cost("gpt-4", record, make_reference())

    assert not verdict.is_valid
    assert verdict.confidence == "low"
    assert verdict.issues[0].startswith("Input cost differs significantly")


def test_fact_check_missing_comparable_fields() -> None:
    """Report records that lack the fields the reference prices."""
    verdict = fact_check_model_cost(
        "gpt-4", PricingRecord(flat=20, unit="month"), make_reference()
    )

    assert not verdict.is_valid
    assert verdict.confidence == "medium"
    assert verdict.issues == ("Missing pricing data to fact-check",)
