"""Prometheus metrics definitions."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "mealweek_http_requests_total",
    "Total number of HTTP requests processed by the meal-plan API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "mealweek_http_request_duration_seconds",
    "Latency of HTTP requests processed by the meal-plan API",
    ["method", "path"],
)

SLOT_GENERATIONS = Counter(
    "mealweek_slot_generations_total",
    "Meal slot generation attempts by outcome",
    ["outcome"],
)

GENERATION_LATENCY = Histogram(
    "mealweek_generation_duration_seconds",
    "Latency of recipe generation gateway calls",
    buckets=(0.5, 1, 2.5, 5, 10, 20, 30, 60, 120),
)

QUOTA_DENIALS = Counter(
    "mealweek_quota_denials_total",
    "Usage limiter denials by counter",
    ["counter"],
)

PLANS_COMPLETED = Counter(
    "mealweek_plans_completed_total",
    "Number of weekly plans promoted to completed",
)

SHOPPING_LIST_BUILDS = Counter(
    "mealweek_shopping_list_builds_total",
    "Shopping list consolidation runs by result",
    ["result"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SLOT_GENERATIONS",
    "GENERATION_LATENCY",
    "QUOTA_DENIALS",
    "PLANS_COMPLETED",
    "SHOPPING_LIST_BUILDS",
]
