from __future__ import annotations

from typing import Literal

from catalog_pricing.constants import (
    SUBSCRIPTION_UNIT_KEYWORDS,
    USAGE_UNIT_KEYWORDS,
)
from catalog_pricing.pricing.models import PricingRecord

PricingType = Literal["API", "Subscription", "Variable"]


def is_subscription_pricing(record: PricingRecord) -> bool:
    """Tell recurring/flat charges apart from usage-metered ones.

    An unlabeled flat fee counts as a subscription: usage fees are almost
    always explicitly unit-labeled in source data.
    """
    unit = (record.unit or "").lower()
    if any(keyword in unit for keyword in SUBSCRIPTION_UNIT_KEYWORDS):
        return True
    if record.flat is not None:
        return not any(keyword in unit for keyword in USAGE_UNIT_KEYWORDS)
    return False


def pricing_type(record: PricingRecord) -> PricingType:
    if record.input is not None or record.output is not None:
        return "API"
    if record.flat is not None:
        return "Subscription" if is_subscription_pricing(record) else "API"
    return "Variable"
