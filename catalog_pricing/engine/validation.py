"""Plausibility checks for vendor pricing records.

Two independent verdicts are produced for a record:

- ``validate_model_cost`` runs heuristic bounds (negative amounts, per-domain
  token price bands, subscription bands, output/input consistency).
- ``fact_check_model_cost`` compares against a reference-price lookup when one
  is available. Missing reference data yields a ``medium`` confidence verdict,
  never a failure.

The verdicts are never merged here; callers OR their ``has_problems`` flags.
Both functions are pure, so they are safe to call once per render.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Protocol

from catalog_pricing.constants import (
    ANNUAL_UNIT_KEYWORDS,
    BASE_CURRENCY,
    MONTHS_PER_YEAR,
    OUTPUT_INPUT_RATIO_FLOOR,
    REFERENCE_MISMATCH_TOLERANCE,
    REFERENCE_OUTDATED_TOLERANCE,
    SUBSCRIPTION_MAX_MONTHLY,
    SUBSCRIPTION_MIN_MONTHLY,
    SUBSCRIPTION_SUGGESTED_MONTHLY,
    TOKEN_PRICE_BOUNDS,
)
from catalog_pricing.engine.currency import (
    DEFAULT_EXCHANGE_RATES,
    ExchangeRates,
    convert_currency,
    detect_currency,
)
from catalog_pricing.engine.exceptions import (
    MalformedPricing,
    NormalizationOverflow,
)
from catalog_pricing.engine.units import (
    DEFAULT_SCALE_CORRECTION,
    ScaleCorrection,
    normalize_amount,
)
from catalog_pricing.pricing.models import (
    CONFIDENCE_ORDER,
    Confidence,
    PriceRange,
    PricingRecord,
    ReferencePrice,
    ValidationVerdict,
    as_amount,
)

_KEY_SEPARATORS = re.compile(r"[\s_/]+")
_KEY_INVALID = re.compile(r"[^a-z0-9.\-]")
_RECURRING_UNIT_KEYWORDS = ("month", "subscription", "plan")


class ReferencePriceLookup(Protocol):
    def lookup(
        self, model_name: str, domain: str | None = None
    ) -> ReferencePrice | None: ...


def require_usable(record: PricingRecord | None) -> PricingRecord:
    """Return ``record`` or raise ``MalformedPricing`` when it is inert."""
    if record is None or not record.is_usable:
        raise MalformedPricing("No pricing information available")
    return record


def reference_key(model_name: str) -> str:
    """Normalize a model name into a reference-table key."""
    lowered = _KEY_SEPARATORS.sub("-", model_name.strip().lower())
    return _KEY_INVALID.sub("", lowered)


class StaticReferencePrices:
    """In-memory reference prices keyed by normalized model name."""

    def __init__(
        self,
        prices: Iterable[ReferencePrice],
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self._prices = {reference_key(price.model): price for price in prices}
        self._aliases = {
            reference_key(alias): reference_key(canonical)
            for alias, canonical in (aliases or {}).items()
        }

    def __len__(self) -> int:
        return len(self._prices)

    def lookup(
        self, model_name: str, domain: str | None = None
    ) -> ReferencePrice | None:
        key = reference_key(model_name)
        price = self._prices.get(self._aliases.get(key, key))
        if price is None:
            return None
        if domain and price.domain and price.domain != domain:
            return None
        return price


@dataclass
class _Findings:
    confidence: Confidence = "high"
    is_valid: bool = True
    issues: list[str] = field(default_factory=list)
    suggested_range: PriceRange | None = None

    def flag(
        self,
        message: str,
        confidence: Confidence,
        *,
        invalidates: bool = True,
    ) -> None:
        self.issues.append(message)
        if CONFIDENCE_ORDER[confidence] < CONFIDENCE_ORDER[self.confidence]:
            self.confidence = confidence
        if invalidates:
            self.is_valid = False

    def verdict(self) -> ValidationVerdict:
        return ValidationVerdict(
            is_valid=self.is_valid,
            confidence=self.confidence,
            issues=tuple(self.issues),
            suggested_range=self.suggested_range,
        )


def _to_base(
    amount: float, currency: str, rates: ExchangeRates
) -> float:
    if currency not in rates or BASE_CURRENCY not in rates:
        return amount
    return convert_currency(amount, currency, BASE_CURRENCY, rates)


def validate_model_cost(
    record: PricingRecord | None,
    model_name: str,
    domain: str,
    *,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
    correction: ScaleCorrection = DEFAULT_SCALE_CORRECTION,
) -> ValidationVerdict:
    """Run heuristic plausibility checks over a single pricing record."""
    findings = _Findings()
    try:
        record = require_usable(record)
    except MalformedPricing as exc:
        findings.flag(exc.message, "low")
        return findings.verdict()

    flat = as_amount(record.flat)
    input_amount = as_amount(record.input)
    output_amount = as_amount(record.output)

    for label, value in (
        ("flat", flat),
        ("input", input_amount),
        ("output", output_amount),
    ):
        if value is not None and value < 0:
            findings.flag(f"Negative {label} price ({value:g})", "low")

    currency = detect_currency(record)
    if currency not in rates:
        findings.flag(
            f"Unknown currency '{currency}'; amounts checked unconverted",
            "medium",
            invalidates=False,
        )

    for value in (flat, input_amount, output_amount):
        if value is None or value <= 0:
            continue
        try:
            normalize_amount(
                _to_base(value, currency, rates),
                record.unit,
                correction,
                strict=True,
            )
        except NormalizationOverflow as exc:
            findings.flag(exc.message, "low")
            break

    if input_amount is not None or output_amount is not None:
        _check_token_bounds(
            findings,
            input_amount if input_amount is not None else output_amount,
            record.unit,
            currency,
            domain,
            rates,
            correction,
        )
        if (
            input_amount is not None
            and output_amount is not None
            and input_amount > 0
            and output_amount >= 0
            and output_amount < input_amount * OUTPUT_INPUT_RATIO_FLOOR
        ):
            findings.flag(
                "Output price is more than 10x lower than input price",
                "medium",
                invalidates=False,
            )
    elif flat is not None and flat >= 0:
        _check_subscription_bounds(findings, flat, record.unit, currency, rates)

    return findings.verdict()


def _check_token_bounds(
    findings: _Findings,
    amount: float | None,
    unit: str | None,
    currency: str,
    domain: str,
    rates: ExchangeRates,
    correction: ScaleCorrection,
) -> None:
    bounds = TOKEN_PRICE_BOUNDS.get(domain)
    if bounds is None or amount is None or amount < 0:
        return
    low, high = bounds
    findings.suggested_range = PriceRange(min=low, max=high)
    per_million = normalize_amount(
        _to_base(amount, currency, rates), unit, correction
    ).value
    if per_million > high:
        findings.flag(
            f"Token cost seems unusually high for {domain} "
            f"(~${per_million:,.2f} per 1M tokens)",
            "low",
        )
    elif 0 < per_million < low:
        findings.flag(
            f"Token cost seems unusually low for {domain} "
            f"(~${per_million:.6f} per 1M tokens)",
            "medium",
        )


def _check_subscription_bounds(
    findings: _Findings,
    flat: float,
    unit: str | None,
    currency: str,
    rates: ExchangeRates,
) -> None:
    u = (unit or "").lower()
    annual = any(keyword in u for keyword in ANNUAL_UNIT_KEYWORDS)
    if not annual and not any(k in u for k in _RECURRING_UNIT_KEYWORDS):
        return

    months = MONTHS_PER_YEAR if annual else 1
    period = "Annual" if annual else "Monthly"
    suggested_min, suggested_max = SUBSCRIPTION_SUGGESTED_MONTHLY
    findings.suggested_range = PriceRange(
        min=suggested_min * months, max=suggested_max * months
    )

    amount = _to_base(flat, currency, rates)
    if amount > SUBSCRIPTION_MAX_MONTHLY * months:
        findings.flag(f"{period} subscription seems very expensive", "medium")
    elif 0 < amount < SUBSCRIPTION_MIN_MONTHLY * months:
        findings.flag(f"{period} subscription seems unusually cheap", "medium")


def fact_check_model_cost(
    model_name: str,
    record: PricingRecord | None,
    reference: ReferencePriceLookup | None = None,
    *,
    domain: str | None = None,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
    correction: ScaleCorrection = DEFAULT_SCALE_CORRECTION,
) -> ValidationVerdict:
    """Compare a record against known reference prices for the model."""
    known = reference.lookup(model_name, domain) if reference else None
    if known is None:
        return ValidationVerdict(is_valid=True, confidence="medium")

    findings = _Findings()
    comparisons = [
        (label, expected, as_amount(actual))
        for label, expected, actual in (
            ("Input", known.input, record.input if record else None),
            ("Output", known.output, record.output if record else None),
            ("Flat", known.flat, record.flat if record else None),
        )
        if expected is not None
    ]
    comparable = [item for item in comparisons if item[2] is not None]
    if record is None or not comparable:
        findings.flag("Missing pricing data to fact-check", "medium")
        return findings.verdict()

    currency = detect_currency(record)
    if currency not in rates:
        findings.flag(
            f"Cannot fact-check prices quoted in unknown currency '{currency}'",
            "medium",
            invalidates=False,
        )
        return findings.verdict()

    for label, expected, actual in comparable:
        actual_usd = _to_base(actual, currency, rates)
        if label == "Flat":
            unit_text = ""
        else:
            actual_usd = normalize_amount(actual_usd, record.unit, correction).value
            unit_text = " per 1M tokens"
        if label == "Input" or findings.suggested_range is None:
            findings.suggested_range = PriceRange(
                min=expected * (1 - REFERENCE_OUTDATED_TOLERANCE),
                max=expected * (1 + REFERENCE_OUTDATED_TOLERANCE),
            )

        difference = _relative_difference(actual_usd, expected)
        if difference > REFERENCE_MISMATCH_TOLERANCE:
            findings.flag(
                f"{label} cost differs significantly from known pricing "
                f"(expected ~${expected:g}{unit_text})",
                "low",
            )
        elif difference > REFERENCE_OUTDATED_TOLERANCE:
            findings.flag(
                f"{label} cost may be outdated (expected ~${expected:g}{unit_text})",
                "medium",
                invalidates=False,
            )

    return findings.verdict()


def _relative_difference(actual: float, expected: float) -> float:
    if expected == 0:
        return 0.0 if actual == 0 else float("inf")
    return abs(actual - expected) / expected
