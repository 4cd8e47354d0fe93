"""Prometheus metric definitions for user search observability."""

from prometheus_client import Counter, Histogram

# --- Bucket configurations ---

USER_SEARCH_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)

# --- User search metrics ---

USER_SEARCH_DURATION = Histogram(
    "user_lookup_search_duration_seconds",
    "User search latency in seconds",
    ["outcome"],
    buckets=USER_SEARCH_LATENCY_BUCKETS,
)

USER_SEARCH_TIER_RESULTS = Counter(
    "user_lookup_search_tier_results_total",
    "Candidates contributed by each search tier",
    ["tier"],
)

USER_SEARCH_DENIED = Counter(
    "user_lookup_search_denied_total",
    "Searches rejected because the caller cannot see a requested group",
)
