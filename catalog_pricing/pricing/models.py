from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

Confidence = Literal["low", "medium", "high"]
BadgeKind = Literal[
    "free", "local", "hardware", "api", "subscription", "placeholder"
]

CONFIDENCE_ORDER: dict[str, int] = {"low": 0, "medium": 1, "high": 2}


def as_amount(value: Any) -> float | None:
    """Coerce a vendor-supplied amount to a finite float, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True)
class PricingRecord:
    currency: str | None = None
    unit: str | None = None
    flat: float | None = None
    input: float | None = None
    output: float | None = None
    # pricing tier label, e.g. "Usage" or "Pro plan"
    model: str | None = None
    notes: str | None = None
    url: str | None = None

    @property
    def is_usable(self) -> bool:
        return any(
            as_amount(value) is not None
            for value in (self.flat, self.input, self.output)
        )

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> PricingRecord:
        """Build a record from a loosely-typed catalog payload."""
        return cls(
            currency=raw.get("currency") or None,
            unit=raw.get("unit") or None,
            flat=as_amount(raw.get("flat")),
            input=as_amount(raw.get("input")),
            output=as_amount(raw.get("output")),
            model=raw.get("model"),
            notes=raw.get("notes"),
            url=raw.get("url"),
        )


@dataclass(frozen=True)
class LicenseInfo:
    name: str
    type: str


@dataclass(frozen=True)
class Model:
    name: str
    domain: str = "Other"
    pricing: tuple[PricingRecord, ...] = ()
    license: LicenseInfo | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class PriceRange:
    min: float
    max: float


@dataclass(frozen=True)
class ValidationVerdict:
    is_valid: bool
    confidence: Confidence
    issues: tuple[str, ...] = ()
    suggested_range: PriceRange | None = None

    @property
    def has_problems(self) -> bool:
        return not self.is_valid or self.confidence == "low"


@dataclass(frozen=True)
class ReferencePrice:
    """Known list price for a model, in USD per 1M tokens (or flat USD)."""

    model: str
    input: float | None = None
    output: float | None = None
    flat: float | None = None
    domain: str | None = None


@dataclass(frozen=True)
class Badge:
    label: str
    kind: BadgeKind


@dataclass(frozen=True)
class RecordVerdicts:
    record: PricingRecord
    heuristic: ValidationVerdict
    fact_check: ValidationVerdict

    @property
    def has_problems(self) -> bool:
        return self.heuristic.has_problems or self.fact_check.has_problems

    @property
    def has_issues(self) -> bool:
        return bool(self.heuristic.issues or self.fact_check.issues)


@dataclass(frozen=True)
class ApiCost:
    """Usage cost of one API record in the display currency."""

    per_million: float
    per_1k: float
    currency: str
    converted: bool
    blended: bool = False


@dataclass(frozen=True)
class SubscriptionCost:
    amount: float
    currency: str
    period: Literal["/mo", "/yr"]
    converted: bool


@dataclass(frozen=True)
class PricingDetail:
    """One row of the per-record pricing breakdown."""

    kind: Literal["api", "subscription", "other"]
    title: str
    description: str
    # amount as quoted, in the source currency
    amount: str
    api_cost: ApiCost | None = None
    subscription_cost: SubscriptionCost | None = None


@dataclass(frozen=True)
class CostDescription:
    badges: tuple[Badge, ...]
    tooltip: str
    has_validation_issues: bool = False
    api_cost: ApiCost | None = None
    subscription_cost: SubscriptionCost | None = None
    verdicts: tuple[RecordVerdicts, ...] = field(default_factory=tuple)

    @property
    def short_display(self) -> str:
        return " • ".join(badge.label for badge in self.badges)
