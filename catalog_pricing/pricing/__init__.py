"""Pricing data model and static data loading."""

from catalog_pricing.pricing.models import (
    Badge,
    CostDescription,
    LicenseInfo,
    Model,
    PriceRange,
    PricingRecord,
    ReferencePrice,
    ValidationVerdict,
)
from catalog_pricing.pricing.repository import PricingDataRepository

__all__ = [
    "Badge",
    "CostDescription",
    "LicenseInfo",
    "Model",
    "PriceRange",
    "PricingDataRepository",
    "PricingRecord",
    "ReferencePrice",
    "ValidationVerdict",
]
