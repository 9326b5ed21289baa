BASE_CURRENCY = "USD"
PLACEHOLDER = "—"

ONE_THOUSAND = 1_000
ONE_MILLION = 1_000_000

# Vendor scale repair: values above this are assumed mis-scaled.
SCALE_CORRECTION_THRESHOLD = 10_000

# Blended cost weighting (input:output).
BLEND_INPUT_WEIGHT = 3
BLEND_OUTPUT_WEIGHT = 1

OPEN_SOURCE_LICENSE_TYPES = {"OSI", "Copyleft"}
PROPRIETARY_LICENSE_NAME = "Proprietary"
HARDWARE_TAG_PATTERN = r"vram|gb|gpu"

SUBSCRIPTION_UNIT_KEYWORDS = ("month", "year", "annual", "subscription", "plan")
USAGE_UNIT_KEYWORDS = ("token", "request", "call")
ANNUAL_UNIT_KEYWORDS = ("year", "annual")

ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW"}

# USD per 1M tokens.
TOKEN_PRICE_BOUNDS = {
    "LLM": (0.001, 1000.0),
    "VLM": (0.001, 1000.0),
}

# USD per month.
SUBSCRIPTION_MIN_MONTHLY = 1.0
SUBSCRIPTION_MAX_MONTHLY = 1000.0
SUBSCRIPTION_SUGGESTED_MONTHLY = (5.0, 500.0)
MONTHS_PER_YEAR = 12

# Output cheaper than input by more than this factor is atypical.
OUTPUT_INPUT_RATIO_FLOOR = 0.1

REFERENCE_OUTDATED_TOLERANCE = 0.2
REFERENCE_MISMATCH_TOLERANCE = 0.5

MAX_BATCH_SIZE = 500
MAX_REQUEST_BODY_BYTES = 1_048_576
