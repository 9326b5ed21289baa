"""Cost display for a catalog model.

``describe_cost`` turns a model's pricing records into a short badge list and
a longer tooltip summary, in the caller's target currency. Only the first
usable API record and the first usable subscription record contribute: quotes
of the same kind are never merged. Currency problems degrade a record's
output and never abort the model or the batch.

``pricing_details`` is the long form: one row per record, grouped as API,
subscription and other charges. ``cost_sort_key`` orders models by their
primary quote.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable, TypeVar

from catalog_pricing.constants import (
    ANNUAL_UNIT_KEYWORDS,
    BLEND_INPUT_WEIGHT,
    BLEND_OUTPUT_WEIGHT,
    HARDWARE_TAG_PATTERN,
    MONTHS_PER_YEAR,
    ONE_THOUSAND,
    OPEN_SOURCE_LICENSE_TYPES,
    PLACEHOLDER,
    PROPRIETARY_LICENSE_NAME,
    SUBSCRIPTION_UNIT_KEYWORDS,
)
from catalog_pricing.engine.classifier import is_subscription_pricing, pricing_type
from catalog_pricing.engine.currency import (
    DEFAULT_EXCHANGE_RATES,
    ExchangeRates,
    convert_or_passthrough,
    detect_currency,
)
from catalog_pricing.engine.formatting import currency_symbol, format_currency
from catalog_pricing.engine.units import (
    DEFAULT_SCALE_CORRECTION,
    ScaleCorrection,
    to_per_million,
)
from catalog_pricing.engine.validation import (
    ReferencePriceLookup,
    fact_check_model_cost,
    validate_model_cost,
)
from catalog_pricing.pricing.models import (
    ApiCost,
    Badge,
    CostDescription,
    Model,
    PricingDetail,
    PricingRecord,
    RecordVerdicts,
    SubscriptionCost,
    as_amount,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_HARDWARE_TAG = re.compile(HARDWARE_TAG_PATTERN, re.IGNORECASE)
VALIDATION_WARNING = "\n⚠ Validation issues found"


def blended_cost(input_cost: float, output_cost: float) -> float:
    """Weight input and output rates 3:1 into one representative rate."""
    total_weight = BLEND_INPUT_WEIGHT + BLEND_OUTPUT_WEIGHT
    return (
        input_cost * BLEND_INPUT_WEIGHT + output_cost * BLEND_OUTPUT_WEIGHT
    ) / total_weight


def is_open_source(model: Model) -> bool:
    license_info = model.license
    if license_info is None:
        return False
    return (
        license_info.type in OPEN_SOURCE_LICENSE_TYPES
        and bool(license_info.name)
        and license_info.name != PROPRIETARY_LICENSE_NAME
    )


def find_hardware_tag(model: Model) -> str | None:
    """Return the first tag that looks like a VRAM/GPU requirement."""
    for tag in model.tags:
        if _HARDWARE_TAG.search(tag):
            return tag
    return None


def free_local_badges(model: Model) -> list[Badge]:
    badges = [Badge("Free", "free"), Badge("Local", "local")]
    hardware = find_hardware_tag(model)
    if hardware:
        badges.append(Badge(hardware, "hardware"))
    return badges


def split_pricing(
    model: Model,
) -> tuple[PricingRecord | None, PricingRecord | None]:
    """Return the first usable API record and first usable subscription."""
    api_record: PricingRecord | None = None
    subscription_record: PricingRecord | None = None
    for record in model.pricing:
        if not record.is_usable:
            continue
        if is_subscription_pricing(record):
            if subscription_record is None:
                subscription_record = record
        elif api_record is None:
            api_record = record
    return api_record, subscription_record


def api_cost(
    record: PricingRecord,
    target_currency: str,
    *,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
    correction: ScaleCorrection = DEFAULT_SCALE_CORRECTION,
) -> ApiCost | None:
    """Compute the per-million and per-1K figures of an API record.

    Returns None when the record has no metered amount or the result is not
    a finite number.
    """
    source = detect_currency(record)
    flat = as_amount(record.flat)
    input_amount = as_amount(record.input)
    output_amount = as_amount(record.output)

    def per_million(amount: float) -> tuple[float, bool]:
        normalized = to_per_million(amount, record.unit, correction)
        return convert_or_passthrough(normalized, source, target_currency, rates)

    blended = False
    if flat is not None:
        value, converted = per_million(flat)
    elif input_amount is not None and output_amount is not None:
        input_value, converted = per_million(input_amount)
        output_value, _ = per_million(output_amount)
        value = blended_cost(input_value, output_value)
        blended = True
    elif input_amount is not None:
        value, converted = per_million(input_amount)
    else:
        return None

    if not math.isfinite(value):
        return None
    return ApiCost(
        per_million=value,
        per_1k=value / ONE_THOUSAND,
        currency=target_currency if converted else source,
        converted=converted,
        blended=blended,
    )


def _api_label(cost: ApiCost, rates: ExchangeRates) -> str:
    symbol = currency_symbol(cost.currency, rates)
    return f"API • ~{symbol}{cost.per_1k:.3f}/1K requests"


def api_display(
    record: PricingRecord,
    target_currency: str,
    *,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
    correction: ScaleCorrection = DEFAULT_SCALE_CORRECTION,
) -> str | None:
    cost = api_cost(
        record, target_currency, rates=rates, correction=correction
    )
    return _api_label(cost, rates) if cost is not None else None


def subscription_period(record: PricingRecord) -> str:
    unit = (record.unit or "month").lower()
    if any(keyword in unit for keyword in ANNUAL_UNIT_KEYWORDS):
        return "/yr"
    return "/mo"


def subscription_cost(
    record: PricingRecord,
    target_currency: str,
    *,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
) -> SubscriptionCost | None:
    flat = as_amount(record.flat)
    if flat is None:
        return None
    source = detect_currency(record)
    amount, converted = convert_or_passthrough(
        flat, source, target_currency, rates
    )
    if not math.isfinite(amount):
        return None
    return SubscriptionCost(
        amount=amount,
        currency=target_currency if converted else source,
        period="/yr" if subscription_period(record) == "/yr" else "/mo",
        converted=converted,
    )


def _subscription_label(cost: SubscriptionCost, rates: ExchangeRates) -> str:
    return f"Sub: {format_currency(cost.amount, cost.currency, rates)}{cost.period}"


def subscription_display(
    record: PricingRecord,
    target_currency: str,
    *,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
) -> str | None:
    cost = subscription_cost(record, target_currency, rates=rates)
    return _subscription_label(cost, rates) if cost is not None else None


def cost_sort_key(model: Model) -> float:
    """Sort value of a model's first quote, in its own currency.

    Metered prices rank by input (else output) times 1000. Flat fees rank
    as quoted, with recurring plans spread over twelve months. Models with
    nothing to compare sort as 0.
    """
    if not model.pricing:
        return 0.0
    record = model.pricing[0]
    input_amount = as_amount(record.input)
    output_amount = as_amount(record.output)
    flat = as_amount(record.flat)

    if input_amount is not None:
        key = input_amount * ONE_THOUSAND
    elif output_amount is not None:
        key = output_amount * ONE_THOUSAND
    elif flat is not None:
        unit = (record.unit or "").lower()
        recurring = any(k in unit for k in SUBSCRIPTION_UNIT_KEYWORDS)
        key = flat / MONTHS_PER_YEAR if recurring else flat
    else:
        return 0.0
    return key


def _api_unit_suffix(record: PricingRecord) -> str:
    unit = (record.unit or "").lower()
    if "1m" in unit or "million" in unit:
        return " per 1M tokens"
    if "1k" in unit or "thousand" in unit:
        return " per 1K tokens"
    return " per token"


def cost_summary(
    model: Model,
    target_currency: str,
    *,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
) -> str:
    """Build the tooltip text for the model's primary quote."""
    if not model.pricing:
        if is_open_source(model):
            hardware = find_hardware_tag(model)
            suffix = f" ({hardware})" if hardware else ""
            return f"Free to run locally{suffix}"
        return "No pricing information available"

    record = next((r for r in model.pricing if r.is_usable), None)
    if record is None:
        summary = "Variable pricing"
    else:
        summary = _record_summary(record, target_currency, rates)

    if len(model.pricing) > 1:
        summary += f" ({len(model.pricing)} pricing options)"
    return summary


def _record_summary(
    record: PricingRecord,
    target_currency: str,
    rates: ExchangeRates,
) -> str:
    source = detect_currency(record)
    converted = True

    def money(amount: float) -> str:
        nonlocal converted
        value, ok = convert_or_passthrough(
            amount, source, target_currency, rates
        )
        converted = converted and ok
        return format_currency(value, target_currency if ok else source, rates)

    flat = as_amount(record.flat)
    input_amount = as_amount(record.input)
    output_amount = as_amount(record.output)

    if flat is not None:
        kind = "Subscription" if is_subscription_pricing(record) else "API"
        summary = f"{kind}: {money(flat)}"
        if record.unit:
            summary += f" {_per_unit(record.unit)}"
    elif input_amount is not None and output_amount is not None:
        summary = (
            f"API: {money(input_amount)} input / {money(output_amount)} "
            f"output{_api_unit_suffix(record)}"
        )
    elif input_amount is not None:
        summary = f"API: {money(input_amount)} input{_api_unit_suffix(record)}"
    else:
        summary = f"API: {money(output_amount or 0.0)} output{_api_unit_suffix(record)}"

    if source.upper() != target_currency.upper():
        if converted:
            summary += f" (converted from {source})"
        else:
            summary += f" ({source}, not converted)"
    return summary


def _per_unit(unit: str) -> str:
    unit = unit.strip()
    if unit.lower().startswith(("per ", "/")):
        return unit
    return f"per {unit}"


def _raw_amount(value: float | None) -> str:
    return "?" if value is None else f"{value:g}"


def _with_notes(text: str, record: PricingRecord) -> str:
    return f"{text} • {record.notes}" if record.notes else text


def _api_detail(
    record: PricingRecord,
    target_currency: str,
    rates: ExchangeRates,
    correction: ScaleCorrection,
) -> PricingDetail:
    cost = api_cost(record, target_currency, rates=rates, correction=correction)
    if cost is None:
        description = "API pricing"
    else:
        symbol = currency_symbol(cost.currency, rates)
        description = f"~{symbol}{cost.per_1k:.3f} per 1K requests"
        if cost.blended:
            description += " (blended)"

    symbol = currency_symbol(detect_currency(record), rates)
    flat = as_amount(record.flat)
    input_amount = as_amount(record.input)
    output_amount = as_amount(record.output)
    if flat is not None:
        amount = f"{symbol}{flat:g}/1M"
    elif input_amount is not None or output_amount is not None:
        amount = (
            f"{symbol}{_raw_amount(input_amount)}/"
            f"{_raw_amount(output_amount)} per 1M"
        )
    else:
        amount = PLACEHOLDER

    return PricingDetail(
        kind="api",
        title=record.model or "API Access",
        description=_with_notes(description, record),
        amount=amount,
        api_cost=cost,
    )


def _subscription_detail(
    record: PricingRecord,
    target_currency: str,
    rates: ExchangeRates,
) -> PricingDetail:
    cost = subscription_cost(record, target_currency, rates=rates)
    amount = (
        format_currency(cost.amount, cost.currency, rates)
        if cost is not None
        else PLACEHOLDER
    )
    return PricingDetail(
        kind="subscription",
        title=record.model or "Subscription",
        description=_with_notes(record.unit or "Monthly", record),
        amount=amount,
        subscription_cost=cost,
    )


def _other_detail(model: Model, record: PricingRecord) -> PricingDetail:
    description = f"{pricing_type(record)} • {record.unit or 'License'}"
    return PricingDetail(
        kind="other",
        title=record.model or model.name,
        description=_with_notes(description, record),
        amount=PLACEHOLDER,
    )


def _record_detail(
    model: Model,
    record: PricingRecord,
    kind: str,
    target_currency: str,
    rates: ExchangeRates,
    correction: ScaleCorrection,
) -> PricingDetail:
    if kind == "API":
        return _api_detail(record, target_currency, rates, correction)
    if kind == "Subscription":
        return _subscription_detail(record, target_currency, rates)
    return _other_detail(model, record)


def pricing_details(
    model: Model,
    target_currency: str = "USD",
    *,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
    correction: ScaleCorrection = DEFAULT_SCALE_CORRECTION,
) -> tuple[PricingDetail, ...]:
    """List every record of a model, API rows first, then plans, then others.

    A record whose row cannot be computed is logged and left out.
    """
    groups: dict[str, list[PricingDetail]] = {
        "API": [],
        "Subscription": [],
        "Variable": [],
    }
    for record in model.pricing:
        kind = pricing_type(record)
        detail = _safe_display(
            model,
            lambda: _record_detail(
                model, record, kind, target_currency, rates, correction
            ),
        )
        if detail is not None:
            groups[kind].append(detail)
    return tuple(
        detail
        for kind in ("API", "Subscription", "Variable")
        for detail in groups[kind]
    )


def describe_cost(
    model: Model,
    target_currency: str = "USD",
    *,
    rates: ExchangeRates = DEFAULT_EXCHANGE_RATES,
    show_validation: bool = False,
    reference: ReferencePriceLookup | None = None,
    correction: ScaleCorrection = DEFAULT_SCALE_CORRECTION,
    include_verdicts: bool = False,
) -> CostDescription:
    """Describe a model's cost as display badges plus a tooltip summary."""
    open_source = is_open_source(model)
    tooltip = _safe_display(
        model, lambda: cost_summary(model, target_currency, rates=rates)
    )
    if tooltip is None:
        tooltip = "Variable pricing"

    if not model.pricing and open_source:
        return CostDescription(
            badges=tuple(free_local_badges(model)), tooltip=tooltip
        )

    api_record, subscription_record = split_pricing(model)
    price_badges: list[Badge] = []
    displayed: list[PricingRecord] = []
    api_amount: ApiCost | None = None
    subscription_amount: SubscriptionCost | None = None

    if api_record is not None:
        api_amount = _safe_display(
            model,
            lambda: api_cost(
                api_record, target_currency, rates=rates, correction=correction
            ),
        )
        if api_amount is not None:
            price_badges.append(Badge(_api_label(api_amount, rates), "api"))
            displayed.append(api_record)

    if subscription_record is not None:
        subscription_amount = _safe_display(
            model,
            lambda: subscription_cost(
                subscription_record, target_currency, rates=rates
            ),
        )
        if subscription_amount is not None:
            price_badges.append(
                Badge(
                    _subscription_label(subscription_amount, rates),
                    "subscription",
                )
            )
            displayed.append(subscription_record)

    if not price_badges:
        return CostDescription(
            badges=(Badge(PLACEHOLDER, "placeholder"),), tooltip=tooltip
        )

    badges = free_local_badges(model) if open_source else []
    badges.extend(price_badges)

    verdicts: tuple[RecordVerdicts, ...] = ()
    has_issues = False
    if show_validation:
        verdicts = tuple(
            RecordVerdicts(
                record=record,
                heuristic=validate_model_cost(
                    record,
                    model.name,
                    model.domain,
                    rates=rates,
                    correction=correction,
                ),
                fact_check=fact_check_model_cost(
                    model.name,
                    record,
                    reference,
                    domain=model.domain,
                    rates=rates,
                    correction=correction,
                ),
            )
            for record in displayed
        )
        has_issues = any(v.has_problems for v in verdicts)
        if has_issues or any(v.has_issues for v in verdicts):
            tooltip += VALIDATION_WARNING

    return CostDescription(
        badges=tuple(badges),
        tooltip=tooltip,
        has_validation_issues=has_issues,
        api_cost=api_amount,
        subscription_cost=subscription_amount,
        verdicts=verdicts if include_verdicts else (),
    )


def _safe_display(model: Model, render: Callable[[], T | None]) -> T | None:
    try:
        return render()
    except (ArithmeticError, ValueError) as exc:
        logger.warning(
            "pricing_display_skipped",
            extra={
                "event": "pricing_display_skipped",
                "model": model.name,
                "error_code": type(exc).__name__,
            },
        )
        return None
