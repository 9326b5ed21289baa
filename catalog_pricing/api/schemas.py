from __future__ import annotations

from typing import Annotated, Any, Literal

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from catalog_pricing.constants import BASE_CURRENCY, MAX_BATCH_SIZE

CurrencyCode = Annotated[str, StringConstraints(pattern=r"^[A-Za-z]{3}$")]


class PricingRecordSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    currency: str | None = None
    unit: str | None = None
    flat: float | None = None
    input: float | None = None
    output: float | None = None
    model: str | None = None
    notes: str | None = None
    url: str | None = None


class LicenseSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    type: Literal["OSI", "Copyleft", "Non-Commercial", "Custom", "Proprietary"]


class ModelSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    domain: str = "Other"
    pricing: list[PricingRecordSpec] = Field(default_factory=list)
    license: LicenseSpec | None = None
    tags: list[str] = Field(default_factory=list)


class DescribeOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    target_currency: CurrencyCode = BASE_CURRENCY
    show_validation: bool = False
    include_verdicts: bool = False

    @pydantic.field_validator("target_currency")
    @classmethod
    def upper_currency(cls: type["DescribeOptions"], value: str) -> str:
        """Store currency codes upper-cased."""
        return value.upper()


class DescribeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    model: ModelSpec
    options: DescribeOptions = Field(default_factory=DescribeOptions)


class BatchDescribeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    items: list[ModelSpec] = Field(min_length=1, max_length=MAX_BATCH_SIZE)
    options: DescribeOptions = Field(default_factory=DescribeOptions)


class BadgeEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    label: str
    kind: str


class PriceRangeEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min: float
    max: float


class VerdictEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_valid: bool
    confidence: Literal["low", "medium", "high"]
    issues: list[str]
    suggested_range: PriceRangeEntry | None = None
    has_problems: bool


class RecordVerdictEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    record: PricingRecordSpec
    heuristic: VerdictEntry
    fact_check: VerdictEntry


class ApiCostEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    per_million: float
    per_1k: float
    currency: str
    converted: bool
    blended: bool


class SubscriptionCostEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: float
    currency: str
    period: Literal["/mo", "/yr"]
    converted: bool


class PricingDetailEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["api", "subscription", "other"]
    title: str
    description: str
    amount: str
    api_cost: ApiCostEntry | None = None
    subscription_cost: SubscriptionCostEntry | None = None


class DescribeMeta(BaseModel):
    model_config = ConfigDict(extra="forbid")

    target_currency: str
    engine_version: str
    rates_published_at: str | None = None


class DescribeResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    model: str
    badges: list[BadgeEntry]
    short_display: str
    tooltip: str
    has_validation_issues: bool
    api_cost: ApiCostEntry | None = None
    subscription_cost: SubscriptionCostEntry | None = None
    details: list[PricingDetailEntry] = Field(default_factory=list)
    # null when the primary quote overflows
    sort_key: float | None = None
    verdicts: list[RecordVerdictEntry] | None = None
    meta: DescribeMeta


class BatchDescribeResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    results: list[DescribeResponse]


class ValidateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    model_name: str = Field(min_length=1)
    domain: str = "Other"
    record: PricingRecordSpec | None = None


class ValidateResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    heuristic: VerdictEntry
    fact_check: VerdictEntry
    has_problems: bool


class ConvertRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: float = Field(allow_inf_nan=False)
    from_currency: CurrencyCode
    to_currency: CurrencyCode


class ConvertResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: float
    currency: str
    formatted: str


class NormalizeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: float = Field(allow_inf_nan=False)
    unit: str | None = None
    mode: Literal["strict", "lenient"] = "lenient"


class NormalizeResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    per_million: float
    corrected: bool
    overflow: bool


class ParseRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(min_length=1, max_length=500)


class ParseResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    record: PricingRecordSpec | None


class CurrencyEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str
    name: str
    symbol: str
    rate: float
    decimals: int


class CurrenciesResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base: str
    published_at: str | None
    currencies: list[CurrencyEntry]


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    details: dict[str, Any]


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


class HealthResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: str
    engine_version: str
    rates_published_at: str | None = None
