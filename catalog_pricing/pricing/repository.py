from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from catalog_pricing.engine.currency import CurrencyInfo, ExchangeRates
from catalog_pricing.engine.validation import StaticReferencePrices
from catalog_pricing.pricing import models as pricing_models


class PricingDataRepository:
    def __init__(self, root_dir: Path | None = None) -> None:
        """Initialize data paths, validators, and lazy caches."""
        self._root_dir = root_dir or Path(__file__).resolve().parents[2]
        self._pricing_dir = self._root_dir / "pricing"
        self._schema_dir = self._root_dir / "schema"

        self._rates_validator = Draft202012Validator(
            self._read_json(self._schema_dir / "exchange_rates.schema.json")
        )
        reference_schema = self._schema_dir / "reference_prices.schema.json"
        self._reference_validator = Draft202012Validator(
            self._read_json(reference_schema)
        )

        self._exchange_rates = self._load_exchange_rates()
        self._reference_prices: StaticReferencePrices | None = None

    @property
    def exchange_rates(self) -> ExchangeRates:
        """Return the static rate table."""
        return self._exchange_rates

    @property
    def rates_published_at(self) -> str | None:
        return self._exchange_rates.published_at

    @property
    def reference_prices(self) -> StaticReferencePrices:
        """Return reference prices, loading them on first access."""
        if self._reference_prices is None:
            self._reference_prices = self._load_reference_prices()
        return self._reference_prices

    # ------------------------------------------------------------------
    # Internal loading
    # ------------------------------------------------------------------

    def _load_exchange_rates(self) -> ExchangeRates:
        raw = self._read_json(self._pricing_dir / "exchange_rates.json")
        self._validate_schema(self._rates_validator, raw, "exchange_rates.json")

        currencies: dict[str, CurrencyInfo] = {}
        for entry in raw["currencies"]:
            code = entry["code"].upper()
            if code in currencies:
                message = f"Duplicate currency '{code}' in exchange_rates.json"
                raise ValueError(message)
            currencies[code] = CurrencyInfo(
                code=code,
                rate=float(entry["rate"]),
                symbol=entry["symbol"],
                name=entry["name"],
                decimals=entry.get("decimals", 2),
            )

        return ExchangeRates(
            currencies,
            base=raw["base"],
            published_at=raw.get("published_at"),
        )

    def _load_reference_prices(self) -> StaticReferencePrices:
        path = self._pricing_dir / "reference_prices.json"
        raw = self._read_json(path)
        self._validate_schema(self._reference_validator, raw, path.name)

        prices: list[pricing_models.ReferencePrice] = []
        seen: set[str] = set()
        for entry in raw["models"]:
            if entry["model"] in seen:
                message = f"Duplicate model '{entry['model']}' in {path.name}"
                raise ValueError(message)
            seen.add(entry["model"])
            prices.append(
                pricing_models.ReferencePrice(
                    model=entry["model"],
                    input=entry.get("input"),
                    output=entry.get("output"),
                    flat=entry.get("flat"),
                    domain=entry.get("domain"),
                )
            )

        aliases = {
            str(alias): str(canonical)
            for alias, canonical in raw.get("aliases", {}).items()
        }
        return StaticReferencePrices(prices, aliases=aliases)

    @staticmethod
    def _read_json(path: Path) -> dict[str, Any]:
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def _validate_schema(
        validator: Draft202012Validator,
        payload: dict[str, Any],
        filename: str,
    ) -> None:
        errors = sorted(
            validator.iter_errors(payload),
            key=lambda err: list(err.path),
        )
        if not errors:
            return

        first_error = errors[0]
        path = ".".join(str(part) for part in first_error.path)
        path_suffix = f" at '{path}'" if path else ""
        raise ValueError(
            (
                "Schema validation failed for "
                f"{filename}{path_suffix}: {first_error.message}"
            )
        )
