# provider_gateway/web/metrics.py
from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response

# -------------------------------------------------------
#  Prometheus metrics definitions
# -------------------------------------------------------

HTTP_TOTAL = Counter(
    "gateway_http_requests_total",
    "Total inbound HTTP requests",
    ["method", "path"]
)
HTTP_2XX = Counter("gateway_http_2xx_total", "Inbound 2xx responses")
HTTP_4XX = Counter("gateway_http_4xx_total", "Inbound 4xx responses")
HTTP_5XX = Counter("gateway_http_5xx_total", "Inbound 5xx responses")
HTTP_LATENCY = Histogram(
    "gateway_http_latency_seconds",
    "Inbound request latency (seconds)",
    buckets=(0.005, 0.01, 0.05, 0.1, 0.3, 0.5, 1.0, 3.0, 5.0, 15.0, 30.0)
)

PROVIDER_CALLS = Counter(
    "gateway_provider_calls_total",
    "Outbound provider calls by outcome",
    ["provider", "operation", "outcome"]
)
PROVIDER_RETRIES = Counter(
    "gateway_provider_retries_total",
    "Outbound provider call retries",
    ["provider", "operation"]
)
CIRCUIT_OPEN = Gauge(
    "gateway_circuit_open",
    "1 while the named circuit breaker is open",
    ["breaker"]
)

# -------------------------------------------------------
#  FastAPI router for metrics endpoints
# -------------------------------------------------------

router = APIRouter()

@router.get("/metrics")
async def metrics_endpoint():
    """Prometheus scrape endpoint."""
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
