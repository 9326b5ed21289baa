"""Unit normalization to a canonical "cost per one million items" figure.

Vendors quote prices per token, per 1K, per 1M or per request, and some of
them get the scale wrong. ``to_per_million`` maps a raw ``(amount, unit)``
pair to a per-million figure and then runs a scale-correction strategy over
the result. The default strategy is a lossy heuristic: it repairs the common
"per-million value tagged as per-token" mistake but it is not authoritative,
and it can be swapped out (or disabled) for data sources known to be clean.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from catalog_pricing.constants import (
    ONE_MILLION,
    ONE_THOUSAND,
    SCALE_CORRECTION_THRESHOLD,
)
from catalog_pricing.engine.exceptions import NormalizationOverflow


@dataclass(frozen=True)
class NormalizedAmount:
    value: float
    corrected: bool = False
    # still above the correction threshold after all repair steps
    overflow: bool = False


class ScaleCorrection(Protocol):
    def __call__(self, per_million: float) -> NormalizedAmount: ...


@dataclass(frozen=True)
class ThresholdScaleCorrection:
    """Divide by 1e6, then by 1e3, while the value exceeds ``threshold``."""

    threshold: float = SCALE_CORRECTION_THRESHOLD

    def __call__(self, per_million: float) -> NormalizedAmount:
        value = per_million
        corrected = False
        if value > self.threshold:
            value = value / ONE_MILLION
            corrected = True
        if value > self.threshold:
            value = value / ONE_THOUSAND
        return NormalizedAmount(
            value=value,
            corrected=corrected,
            overflow=value > self.threshold,
        )


@dataclass(frozen=True)
class NoScaleCorrection:
    """Trust the vendor's scale as-is."""

    def __call__(self, per_million: float) -> NormalizedAmount:
        return NormalizedAmount(value=per_million)


DEFAULT_SCALE_CORRECTION: ScaleCorrection = ThresholdScaleCorrection()


def unit_multiplier(unit: str | None) -> int:
    """Return the factor that turns a quoted amount into a per-million one."""
    u = (unit or "").lower()
    if "1k" in u or "thousand" in u:
        return ONE_THOUSAND
    if "token" in u:
        return ONE_MILLION
    return 1


def normalize_amount(
    amount: float,
    unit: str | None,
    correction: ScaleCorrection = DEFAULT_SCALE_CORRECTION,
    *,
    strict: bool = False,
) -> NormalizedAmount:
    """Normalize and report whether the scale heuristic had to step in.

    With ``strict`` an implausible result raises ``NormalizationOverflow``
    instead of being returned as a best-effort value.
    """
    if amount == 0:
        return NormalizedAmount(value=0.0)
    normalized = correction(float(amount) * unit_multiplier(unit))
    if strict and normalized.overflow:
        raise NormalizationOverflow(normalized.value, unit)
    return normalized


def to_per_million(
    amount: float,
    unit: str | None,
    correction: ScaleCorrection = DEFAULT_SCALE_CORRECTION,
) -> float:
    """Convert ``amount`` quoted per ``unit`` into cost per one million."""
    return normalize_amount(amount, unit, correction).value
