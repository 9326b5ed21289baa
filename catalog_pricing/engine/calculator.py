from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from catalog_pricing.constants import BASE_CURRENCY, PLACEHOLDER
from catalog_pricing.engine.aggregator import (
    cost_sort_key,
    describe_cost,
    pricing_details,
)
from catalog_pricing.engine.currency import (
    DEFAULT_EXCHANGE_RATES,
    ExchangeRates,
    convert_currency,
)
from catalog_pricing.engine.exceptions import (
    ConversionOverflow,
    NormalizationOverflow,
)
from catalog_pricing.engine.formatting import format_currency
from catalog_pricing.engine.units import (
    DEFAULT_SCALE_CORRECTION,
    NormalizedAmount,
    ScaleCorrection,
    normalize_amount,
)
from catalog_pricing.engine.validation import (
    ReferencePriceLookup,
    fact_check_model_cost,
    validate_model_cost,
)
from catalog_pricing.pricing.models import (
    Badge,
    CostDescription,
    Model,
    PricingDetail,
    PricingRecord,
    ValidationVerdict,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    amount: float
    currency: str
    formatted: str


@dataclass(frozen=True)
class ValidationReport:
    heuristic: ValidationVerdict
    fact_check: ValidationVerdict

    @property
    def has_problems(self) -> bool:
        return self.heuristic.has_problems or self.fact_check.has_problems


class PricingEngine:
    def __init__(
        self,
        *,
        rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
        reference: ReferencePriceLookup | None = None,
        correction: ScaleCorrection = DEFAULT_SCALE_CORRECTION,
        engine_version: str = "0.0.0",
    ) -> None:
        """Bind the read-only collaborators shared by every call."""
        self._rates = rates
        self._reference = reference
        self._correction = correction
        self._engine_version = engine_version

    @property
    def engine_version(self) -> str:
        """Return the pricing engine version string."""
        return self._engine_version

    @property
    def rates(self) -> ExchangeRates:
        return self._rates

    def describe(
        self,
        model: Model,
        *,
        target_currency: str = BASE_CURRENCY,
        show_validation: bool = False,
        include_verdicts: bool = False,
    ) -> CostDescription:
        """Describe a model's cost in the caller's target currency."""
        return describe_cost(
            model,
            target_currency,
            rates=self._rates,
            show_validation=show_validation,
            reference=self._reference,
            correction=self._correction,
            include_verdicts=include_verdicts,
        )

    def describe_batch(
        self,
        models: Iterable[Model],
        *,
        target_currency: str = BASE_CURRENCY,
        show_validation: bool = False,
        include_verdicts: bool = False,
    ) -> list[CostDescription]:
        """Describe many models; one bad model never affects the others."""
        results: list[CostDescription] = []
        for model in models:
            try:
                results.append(
                    self.describe(
                        model,
                        target_currency=target_currency,
                        show_validation=show_validation,
                        include_verdicts=include_verdicts,
                    )
                )
            except Exception:
                logger.exception(
                    "describe_failed",
                    extra={"event": "describe_failed", "model": model.name},
                )
                results.append(
                    CostDescription(
                        badges=(Badge(PLACEHOLDER, "placeholder"),),
                        tooltip="No pricing information available",
                    )
                )
        return results

    def validate(
        self,
        record: PricingRecord | None,
        *,
        model_name: str,
        domain: str,
    ) -> ValidationReport:
        """Run both independent checks over a record."""
        return ValidationReport(
            heuristic=validate_model_cost(
                record,
                model_name,
                domain,
                rates=self._rates,
                correction=self._correction,
            ),
            fact_check=self.fact_check(model_name, record, domain=domain),
        )

    def fact_check(
        self,
        model_name: str,
        record: PricingRecord | None,
        *,
        domain: str | None = None,
    ) -> ValidationVerdict:
        return fact_check_model_cost(
            model_name,
            record,
            self._reference,
            domain=domain,
            rates=self._rates,
            correction=self._correction,
        )

    def convert(
        self, amount: float, from_currency: str, to_currency: str
    ) -> ConversionResult:
        """Convert strictly; unknown codes raise ``UnknownCurrency``."""
        converted = convert_currency(
            amount, from_currency, to_currency, self._rates
        )
        if not math.isfinite(converted):
            raise ConversionOverflow(amount, from_currency, to_currency)
        code = to_currency.upper()
        return ConversionResult(
            amount=converted,
            currency=code,
            formatted=format_currency(converted, code, self._rates),
        )

    def normalize(
        self, amount: float, unit: str | None, *, strict: bool = False
    ) -> NormalizedAmount:
        """Normalize to cost per one million units.

        A result that is not a finite number raises ``NormalizationOverflow``
        in either mode.
        """
        normalized = normalize_amount(
            amount, unit, self._correction, strict=strict
        )
        if not math.isfinite(normalized.value):
            raise NormalizationOverflow(normalized.value, unit)
        return normalized

    def details(
        self, model: Model, *, target_currency: str = BASE_CURRENCY
    ) -> tuple[PricingDetail, ...]:
        """Return the per-record pricing breakdown of a model."""
        return pricing_details(
            model,
            target_currency,
            rates=self._rates,
            correction=self._correction,
        )

    def sort_by_cost(
        self, models: Iterable[Model], *, descending: bool = False
    ) -> list[Model]:
        return sorted(models, key=cost_sort_key, reverse=descending)
