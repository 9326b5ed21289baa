from __future__ import annotations

from catalog_pricing.engine.classifier import is_subscription_pricing, pricing_type
from catalog_pricing.pricing.models import PricingRecord


def test_recurring_unit_is_subscription() -> None:
    """Classify month, year and plan units as subscriptions."""
    for unit in ("per month", "Yearly", "annual license", "Pro plan"):
        assert is_subscription_pricing(PricingRecord(flat=20, unit=unit))


def test_unlabeled_flat_fee_is_subscription() -> None:
    """Treat a flat amount with no unit as a recurring charge."""
    assert is_subscription_pricing(PricingRecord(flat=20))


def test_usage_labeled_flat_fee_is_not_subscription() -> None:
    """Keep per-request and per-token flat fees on the usage side."""
    assert not is_subscription_pricing(PricingRecord(flat=0.01, unit="per request"))
    assert not is_subscription_pricing(PricingRecord(flat=0.5, unit="per 1K tokens"))


def test_metered_record_is_not_subscription() -> None:
    """Never classify input/output token pricing as a subscription."""
    record = PricingRecord(input=3, output=15, unit="per 1M tokens")

    assert not is_subscription_pricing(record)


def test_pricing_type_labels() -> None:
    """Map records to API, Subscription or Variable labels."""
    assert pricing_type(PricingRecord(input=1, unit="per token")) == "API"
    assert pricing_type(PricingRecord(flat=20, unit="month")) == "Subscription"
    assert pricing_type(PricingRecord(flat=0.1, unit="per call")) == "API"
    assert pricing_type(PricingRecord(notes="contact sales")) == "Variable"
