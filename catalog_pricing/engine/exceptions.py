from __future__ import annotations

import math
from typing import Any


class PricingError(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        *,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Create a structured pricing exception for API and engine layers."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class UnknownCurrency(PricingError):
    def __init__(self, currency: str) -> None:
        """Raised when a conversion names a code missing from the rate table."""
        super().__init__(
            "UNKNOWN_CURRENCY",
            f"Unknown currency '{currency}'",
            details={"currency": currency},
        )
        self.currency = currency


class MalformedPricing(PricingError):
    def __init__(self, message: str = "Pricing record has no usable amount") -> None:
        """Raised when a pricing record carries no usable numeric field."""
        super().__init__("MALFORMED_PRICING", message)


class NormalizationOverflow(PricingError):
    def __init__(self, value: float, unit: str | None) -> None:
        """Raised when scale correction still leaves an implausible magnitude."""
        super().__init__(
            "NORMALIZATION_OVERFLOW",
            "Price magnitude remains implausible after scale correction",
            details={
                "value": value if math.isfinite(value) else str(value),
                "unit": unit,
            },
        )
        self.value = value
        self.unit = unit


class ConversionOverflow(PricingError):
    def __init__(self, amount: float, from_currency: str, to_currency: str) -> None:
        """Raised when a conversion result is not a finite number."""
        super().__init__(
            "CONVERSION_OVERFLOW",
            f"Converting {amount:g} {from_currency} to {to_currency} "
            "overflows the representable range",
            details={
                "amount": amount,
                "from_currency": from_currency,
                "to_currency": to_currency,
            },
        )
