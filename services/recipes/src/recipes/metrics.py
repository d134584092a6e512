"""Prometheus metrics for the recipes service."""
from prometheus_client import Counter, Histogram

GENERATION_REQUESTS = Counter(
    "recipes_generation_requests_total",
    "Generation requests by outcome",
    ["outcome"],  # completed | failed | rate_limited | invalid | disconnected
)
RATE_LIMIT_REJECTIONS = Counter(
    "recipes_rate_limit_rejections_total",
    "Requests rejected by a rate limiter",
    ["action"],
)
GENERATION_DURATION = Histogram(
    "recipes_generation_stream_seconds",
    "Wall time from provider call to terminal event",
    buckets=(0.5, 1, 2, 5, 10, 20, 40, 80, 120),
)
INGREDIENT_VALIDATIONS = Counter(
    "recipes_ingredient_validations_total",
    "Single-ingredient validations by result",
    ["valid"],
)
