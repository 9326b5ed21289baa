from __future__ import annotations

import logging
import math
from dataclasses import asdict

from fastapi import APIRouter, Request

from catalog_pricing.api.schemas import (
    ApiCostEntry,
    BadgeEntry,
    BatchDescribeRequest,
    BatchDescribeResponse,
    ConvertRequest,
    ConvertResponse,
    CurrenciesResponse,
    CurrencyEntry,
    DescribeMeta,
    DescribeOptions,
    DescribeRequest,
    DescribeResponse,
    ErrorEnvelope,
    HealthResponse,
    ModelSpec,
    NormalizeRequest,
    NormalizeResponse,
    ParseRequest,
    ParseResponse,
    PriceRangeEntry,
    PricingDetailEntry,
    PricingRecordSpec,
    RecordVerdictEntry,
    SubscriptionCostEntry,
    ValidateRequest,
    ValidateResponse,
    VerdictEntry,
)
from catalog_pricing.engine import PricingEngine, UnknownCurrency, cost_sort_key
from catalog_pricing.engine.parsing import parse_pricing_text
from catalog_pricing.pricing.models import (
    ApiCost,
    CostDescription,
    LicenseInfo,
    Model,
    PricingDetail,
    PricingRecord,
    SubscriptionCost,
    ValidationVerdict,
)
from catalog_pricing.pricing.repository import PricingDataRepository

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/v1",
    responses={
        400: {"model": ErrorEnvelope},
        413: {"model": ErrorEnvelope},
        500: {"model": ErrorEnvelope},
    },
)


def _get_repository(request: Request) -> PricingDataRepository:
    return request.app.state.repository


def _get_engine(request: Request) -> PricingEngine:
    return request.app.state.engine


def _to_record(spec: PricingRecordSpec) -> PricingRecord:
    return PricingRecord(**spec.model_dump())


def _to_model(spec: ModelSpec) -> Model:
    license_info = None
    if spec.license is not None:
        license_info = LicenseInfo(name=spec.license.name, type=spec.license.type)
    return Model(
        name=spec.name,
        domain=spec.domain,
        pricing=tuple(_to_record(item) for item in spec.pricing),
        license=license_info,
        tags=tuple(spec.tags),
    )


def _verdict_entry(verdict: ValidationVerdict) -> VerdictEntry:
    suggested = verdict.suggested_range
    return VerdictEntry(
        is_valid=verdict.is_valid,
        confidence=verdict.confidence,
        issues=list(verdict.issues),
        suggested_range=(
            PriceRangeEntry(min=suggested.min, max=suggested.max)
            if suggested is not None
            else None
        ),
        has_problems=verdict.has_problems,
    )


def _api_cost_entry(cost: ApiCost | None) -> ApiCostEntry | None:
    if cost is None:
        return None
    return ApiCostEntry(**asdict(cost))


def _subscription_cost_entry(
    cost: SubscriptionCost | None,
) -> SubscriptionCostEntry | None:
    if cost is None:
        return None
    return SubscriptionCostEntry(**asdict(cost))


def _detail_entry(detail: PricingDetail) -> PricingDetailEntry:
    return PricingDetailEntry(
        kind=detail.kind,
        title=detail.title,
        description=detail.description,
        amount=detail.amount,
        api_cost=_api_cost_entry(detail.api_cost),
        subscription_cost=_subscription_cost_entry(detail.subscription_cost),
    )


def _require_known_currency(engine: PricingEngine, code: str) -> None:
    if code not in engine.rates:
        raise UnknownCurrency(code)


def _describe_response(
    model: Model,
    description: CostDescription,
    options: DescribeOptions,
    engine: PricingEngine,
) -> DescribeResponse:
    sort_key = cost_sort_key(model)
    verdicts = None
    if options.include_verdicts and options.show_validation:
        verdicts = [
            RecordVerdictEntry(
                record=PricingRecordSpec(**asdict(item.record)),
                heuristic=_verdict_entry(item.heuristic),
                fact_check=_verdict_entry(item.fact_check),
            )
            for item in description.verdicts
        ]

    return DescribeResponse(
        model=model.name,
        badges=[
            BadgeEntry(label=badge.label, kind=badge.kind)
            for badge in description.badges
        ],
        short_display=description.short_display,
        tooltip=description.tooltip,
        has_validation_issues=description.has_validation_issues,
        api_cost=_api_cost_entry(description.api_cost),
        subscription_cost=_subscription_cost_entry(description.subscription_cost),
        details=[
            _detail_entry(detail)
            for detail in engine.details(
                model, target_currency=options.target_currency
            )
        ],
        sort_key=sort_key if math.isfinite(sort_key) else None,
        verdicts=verdicts,
        meta=DescribeMeta(
            target_currency=options.target_currency,
            engine_version=engine.engine_version,
            rates_published_at=engine.rates.published_at,
        ),
    )


@router.post("/describe", response_model=DescribeResponse)
def describe(payload: DescribeRequest, request: Request) -> DescribeResponse:
    """Describe one model's cost as badges plus a tooltip summary."""
    engine = _get_engine(request)
    options = payload.options
    _require_known_currency(engine, options.target_currency)
    logger.info(
        "describe_requested",
        extra={
            "event": "describe_requested",
            "model": payload.model.name,
            "target_currency": options.target_currency,
        },
    )

    model = _to_model(payload.model)
    description = engine.describe(
        model,
        target_currency=options.target_currency,
        show_validation=options.show_validation,
        include_verdicts=options.include_verdicts,
    )
    return _describe_response(model, description, options, engine)


@router.post("/describe/batch", response_model=BatchDescribeResponse)
def describe_batch(
    payload: BatchDescribeRequest, request: Request
) -> BatchDescribeResponse:
    """Describe a batch of models; each model degrades independently."""
    engine = _get_engine(request)
    options = payload.options
    _require_known_currency(engine, options.target_currency)

    models = [_to_model(item) for item in payload.items]
    descriptions = engine.describe_batch(
        models,
        target_currency=options.target_currency,
        show_validation=options.show_validation,
        include_verdicts=options.include_verdicts,
    )
    return BatchDescribeResponse(
        results=[
            _describe_response(model, description, options, engine)
            for model, description in zip(models, descriptions)
        ]
    )


@router.post("/validate", response_model=ValidateResponse)
def validate(payload: ValidateRequest, request: Request) -> ValidateResponse:
    """Return the heuristic and reference verdicts for one record."""
    engine = _get_engine(request)
    record = _to_record(payload.record) if payload.record is not None else None
    report = engine.validate(
        record, model_name=payload.model_name, domain=payload.domain
    )
    return ValidateResponse(
        heuristic=_verdict_entry(report.heuristic),
        fact_check=_verdict_entry(report.fact_check),
        has_problems=report.has_problems,
    )


@router.post("/convert", response_model=ConvertResponse)
def convert(payload: ConvertRequest, request: Request) -> ConvertResponse:
    """Convert an amount strictly between two known currencies."""
    engine = _get_engine(request)
    result = engine.convert(
        payload.amount, payload.from_currency, payload.to_currency
    )
    return ConvertResponse(
        amount=result.amount,
        currency=result.currency,
        formatted=result.formatted,
    )


@router.post("/normalize", response_model=NormalizeResponse)
def normalize(payload: NormalizeRequest, request: Request) -> NormalizeResponse:
    """Normalize an amount to cost per one million units."""
    engine = _get_engine(request)
    normalized = engine.normalize(
        payload.amount, payload.unit, strict=payload.mode == "strict"
    )
    return NormalizeResponse(
        per_million=normalized.value,
        corrected=normalized.corrected,
        overflow=normalized.overflow,
    )


@router.post("/parse", response_model=ParseResponse)
def parse(payload: ParseRequest, request: Request) -> ParseResponse:
    """Parse free-text vendor pricing into a structured record."""
    engine = _get_engine(request)
    record = parse_pricing_text(payload.text, engine.rates)
    if record is None:
        return ParseResponse(record=None)
    return ParseResponse(record=PricingRecordSpec(**asdict(record)))


@router.get("/currencies", response_model=CurrenciesResponse)
def list_currencies(request: Request) -> CurrenciesResponse:
    """List the currencies in the active rate table."""
    rates = _get_repository(request).exchange_rates
    currencies = [
        CurrencyEntry(
            code=code,
            name=rates.name(code),
            symbol=rates.symbol(code),
            rate=rates.rate(code),
            decimals=rates.decimals(code),
        )
        for code in rates.codes()
    ]
    return CurrenciesResponse(
        base=rates.base,
        published_at=rates.published_at,
        currencies=currencies,
    )


@router.get("/healthz", response_model=HealthResponse, include_in_schema=False)
def healthz(request: Request) -> HealthResponse:
    """Readiness probe; answers 200 once the rate table is loaded."""
    repository = _get_repository(request)
    engine = _get_engine(request)
    return HealthResponse(
        status="ok",
        engine_version=engine.engine_version,
        rates_published_at=repository.rates_published_at,
    )
