"""
Prometheus metrics for the job search pipeline.

HTTP traffic is labelled by route template rather than raw path, so a
request for /jobs/search?q=x and one for /jobs/search?q=y share a series.
Paths that match no route are grouped under "unmatched".

Pipeline counters:
    provider_requests_total{provider, outcome}
        outcome is one of success, empty, error, unavailable
    enrichment_failures_total{stage}
        stage is one of geocode, transit, commute, ai_message
    cache_hits_total / cache_misses_total{layer}
        layer is geocode or transit
    commute_batch_seconds
"""

import time
import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
    REGISTRY,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

UNMATCHED_ROUTE = "unmatched"
SKIPPED_PATHS = {"/metrics", "/health"}

HTTP_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "route", "status"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

HTTP_REQUESTS = Counter(
    "http_requests_total",
    "HTTP requests served",
    ["method", "route", "status"],
)

HTTP_IN_FLIGHT = Gauge(
    "http_requests_in_flight",
    "HTTP requests currently being served",
    ["route"],
)

CACHE_HITS = Counter("cache_hits_total", "Commute cache hits", ["layer"])
CACHE_MISSES = Counter("cache_misses_total", "Commute cache misses", ["layer"])

PROVIDER_REQUESTS = Counter(
    "provider_requests_total",
    "Listing provider calls by outcome",
    ["provider", "outcome"],
)

ENRICHMENT_FAILURES = Counter(
    "enrichment_failures_total",
    "Enrichment steps that degraded to unknown or fallback values",
    ["stage"],
)

COMMUTE_BATCH_LATENCY = Histogram(
    "commute_batch_seconds",
    "Time to resolve commutes for a page of listings",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)


def route_template(request: Request) -> str:
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", UNMATCHED_ROUTE)
    return UNMATCHED_ROUTE


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Times every routed request and counts it by status code."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        route = route_template(request)
        HTTP_IN_FLIGHT.labels(route=route).inc()
        started = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        except Exception:
            logger.exception(f"Unhandled error serving {request.method} {route}")
            raise
        finally:
            HTTP_LATENCY.labels(request.method, route, status).observe(time.perf_counter() - started)
            HTTP_REQUESTS.labels(request.method, route, status).inc()
            HTTP_IN_FLIGHT.labels(route=route).dec()


def metrics_endpoint(request: Request) -> Response:
    return PlainTextResponse(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


def setup_metrics(app: FastAPI) -> None:
    """Install the timing middleware and expose GET /metrics."""
    app.add_middleware(PrometheusMiddleware)
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])
    logger.info("Prometheus metrics configured")


def record_cache_hit(layer: str) -> None:
    CACHE_HITS.labels(layer=layer).inc()


def record_cache_miss(layer: str) -> None:
    CACHE_MISSES.labels(layer=layer).inc()


def record_provider_outcome(provider: str, outcome: str) -> None:
    PROVIDER_REQUESTS.labels(provider=provider, outcome=outcome).inc()


def record_enrichment_failure(stage: str) -> None:
    ENRICHMENT_FAILURES.labels(stage=stage).inc()


def record_commute_batch_latency(duration: float) -> None:
    COMMUTE_BATCH_LATENCY.observe(duration)
