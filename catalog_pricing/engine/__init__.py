"""Engine package exports."""

from catalog_pricing.engine.aggregator import (
    blended_cost,
    cost_sort_key,
    describe_cost,
    pricing_details,
)
from catalog_pricing.engine.calculator import PricingEngine, ValidationReport
from catalog_pricing.engine.classifier import is_subscription_pricing, pricing_type
from catalog_pricing.engine.currency import (
    DEFAULT_EXCHANGE_RATES,
    CurrencyInfo,
    ExchangeRates,
    convert_currency,
    detect_currency,
)
from catalog_pricing.engine.exceptions import (
    ConversionOverflow,
    MalformedPricing,
    NormalizationOverflow,
    PricingError,
    UnknownCurrency,
)
from catalog_pricing.engine.formatting import currency_symbol, format_currency
from catalog_pricing.engine.parsing import parse_pricing_text
from catalog_pricing.engine.units import (
    NoScaleCorrection,
    ThresholdScaleCorrection,
    to_per_million,
)
from catalog_pricing.engine.validation import (
    StaticReferencePrices,
    fact_check_model_cost,
    validate_model_cost,
)

__all__ = [
    "DEFAULT_EXCHANGE_RATES",
    "ConversionOverflow",
    "CurrencyInfo",
    "ExchangeRates",
    "MalformedPricing",
    "NoScaleCorrection",
    "NormalizationOverflow",
    "PricingEngine",
    "PricingError",
    "StaticReferencePrices",
    "ThresholdScaleCorrection",
    "UnknownCurrency",
    "ValidationReport",
    "blended_cost",
    "convert_currency",
    "cost_sort_key",
    "currency_symbol",
    "describe_cost",
    "detect_currency",
    "fact_check_model_cost",
    "format_currency",
    "is_subscription_pricing",
    "parse_pricing_text",
    "pricing_details",
    "pricing_type",
    "to_per_million",
    "validate_model_cost",
]
