from __future__ import annotations

from pathlib import Path

import pytest

from catalog_pricing.engine import (
    ConversionOverflow,
    NoScaleCorrection,
    NormalizationOverflow,
    PricingEngine,
    UnknownCurrency,
)
from catalog_pricing.pricing.models import LicenseInfo, Model, PricingRecord
from catalog_pricing.pricing.repository import PricingDataRepository

ROOT_DIR = Path(__file__).resolve().parents[1]


def make_engine() -> PricingEngine:
    """Create a pricing engine bound to the bundled data files."""
    repository = PricingDataRepository(root_dir=ROOT_DIR)
    return PricingEngine(
        rates=repository.exchange_rates,
        reference=repository.reference_prices,
        engine_version="0.1.0",
    )


def test_describe_in_target_currency() -> None:
    """Describe a subscription in the caller's currency."""
    engine = make_engine()
    model = Model(
        name="Chat Pro",
        pricing=(PricingRecord(flat=20, unit="month", currency="USD"),),
    )

    description = engine.describe(model, target_currency="GBP")

    assert description.short_display == "Sub: £14.60/mo"


def test_describe_batch_isolates_failures() -> None:
    """Keep describing other models when one of them blows up."""
    engine = make_engine()
    good = Model(name="Good", pricing=(PricingRecord(flat=10, unit="month"),))
    # tags must be strings; a bad value breaks the hardware tag search
    broken = Model(
        name="Broken",
        license=LicenseInfo(name="MIT", type="OSI"),
        tags=(None,),  # type: ignore[arg-type]
    )

    results = engine.describe_batch([broken, good])

    assert [result.short_display for result in results] == [
        "—",
        "Sub: $10.00/mo",
    ]


def test_validate_returns_both_verdicts() -> None:
    """Run the heuristic and reference checks independently."""
    engine = make_engine()
    record = PricingRecord(input=100, output=60, unit="per 1M tokens")

    report = engine.validate(record, model_name="gpt-4", domain="LLM")

    assert report.heuristic.is_valid
    assert not report.fact_check.is_valid
    assert report.has_problems


def test_convert_formats_result() -> None:
    """Return the converted amount with its display string."""
    engine = make_engine()

    result = engine.convert(100, "USD", "jpy")

    assert result.amount == pytest.approx(11_000)
    assert result.currency == "JPY"
    assert result.formatted == "¥11,000"


def test_convert_rejects_unknown_currency() -> None:
    """Surface unknown codes on the explicit conversion path."""
    engine = make_engine()

    with pytest.raises(UnknownCurrency):
        engine.convert(1, "USD", "XYZ")


def test_normalize_modes() -> None:
    """Report overflow leniently and raise on it in strict mode."""
    engine = make_engine()

    assert engine.normalize(5e13, "per request").overflow
    with pytest.raises(NormalizationOverflow):
        engine.normalize(5e13, "per request", strict=True)


def test_custom_scale_correction_is_used() -> None:
    """Pass the configured correction strategy through to normalization."""
    engine = PricingEngine(correction=NoScaleCorrection())

    assert engine.normalize(30, "per 1M tokens").value == pytest.approx(30e6)


def test_fact_check_uses_bundled_reference_prices() -> None:
    """Check a record against the bundled list prices through the facade."""
    engine = make_engine()
    record = PricingRecord(input=3, output=15, unit="per 1M tokens")

    verdict = engine.fact_check("Claude 3 Sonnet", record, domain="LLM")

    assert verdict.is_valid
    assert verdict.confidence == "high"


def test_convert_rejects_overflowing_result() -> None:
    """Raise instead of returning an infinite conversion."""
    engine = make_engine()

    with pytest.raises(ConversionOverflow) as exc_info:
        engine.convert(1e307, "USD", "KRW")

    assert exc_info.value.code == "CONVERSION_OVERFLOW"
    assert exc_info.value.status_code == 400


def test_normalize_rejects_infinite_result_in_both_modes() -> None:
    """Never hand back an infinite per-million figure."""
    engine = make_engine()

    for strict in (False, True):
        with pytest.raises(NormalizationOverflow) as exc_info:
            engine.normalize(1e308, "per token", strict=strict)
        assert exc_info.value.details["value"] == "inf"


def test_sort_by_cost_orders_models() -> None:
    """Order models by their primary quote, cheapest first by default."""
    engine = make_engine()
    cheap = Model(name="Cheap", pricing=(PricingRecord(input=0.5, output=1.5),))
    plan = Model(name="Plan", pricing=(PricingRecord(flat=240, unit="year"),))
    pricey = Model(name="Pricey", pricing=(PricingRecord(input=30, output=60),))
    unpriced = Model(name="Unpriced")

    ordered = engine.sort_by_cost([pricey, plan, unpriced, cheap])
    descending = engine.sort_by_cost([cheap, pricey], descending=True)

    assert [model.name for model in ordered] == [
        "Unpriced",
        "Plan",
        "Cheap",
        "Pricey",
    ]
    assert [model.name for model in descending] == ["Pricey", "Cheap"]


def test_details_in_target_currency() -> None:
    """Break a model down per record in the caller's currency."""
    engine = make_engine()
    model = Model(
        name="Chat Pro",
        pricing=(PricingRecord(flat=20, unit="month", currency="USD"),),
    )

    (detail,) = engine.details(model, target_currency="GBP")

    assert detail.kind == "subscription"
    assert detail.amount == "£14.60"
