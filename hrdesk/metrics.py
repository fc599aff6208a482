from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path", "status"],
)

PAGE_RESETS = Counter(
    "list_view_page_resets_total",
    "Page clamp corrections after the collection shrank",
    ["view"],
)
SUPERSEDED_FETCHES = Counter(
    "list_view_superseded_fetches_total",
    "Fetch results discarded because a newer fetch was issued",
    ["view"],
)
FETCH_FAILURES = Counter(
    "list_view_fetch_failures_total",
    "List fetches that failed",
    ["view"],
)
PREFERENCE_SAVE_FAILURES = Counter(
    "list_view_preference_save_failures_total",
    "Column preference saves that failed",
    ["view"],
)
QUERY_CACHE_LOOKUPS = Counter(
    "list_query_cache_lookups_total",
    "Query cache lookups",
    ["freshness", "result"],
)


def observe_request(method: str, path: str, status: int, duration: float) -> None:
    labels = {"method": method, "path": path, "status": str(status)}
    REQUEST_COUNT.labels(**labels).inc()
    REQUEST_LATENCY.labels(**labels).observe(duration)
