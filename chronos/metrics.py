from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

# Keep metrics module-level singletons
api_requests_total = Counter(
    "cronjob_api_requests_total",
    "HTTP attempts made against the scheduling provider",
    ["method", "status"],
)
api_retries_total = Counter("cronjob_api_retries_total", "Attempts retried after a transient failure")
api_errors_total = Counter(
    "cronjob_api_errors_total",
    "Classified errors surfaced by the API client",
    ["kind"],
)
api_request_latency_seconds = Histogram(
    "cronjob_api_request_latency_seconds", "Latency of a single provider HTTP attempt"
)

# Bulk orchestration
bulk_items_total = Counter(
    "cronjob_bulk_items_total",
    "Items processed by bulk operations",
    ["operation", "outcome"],
)

# Control plane
request_latency_seconds = Histogram("request_latency_seconds", "HTTP request latency seconds")


def metrics_response():
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
