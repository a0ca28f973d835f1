"""Prometheus metrics helpers."""

from __future__ import annotations

import time
from typing import Callable

from fastapi import APIRouter, Depends, Response
from prometheus_client import (
    Counter,
    Histogram,
    Summary,
    CONTENT_TYPE_LATEST,
    generate_latest,
)

from .deps.auth import get_api_key

REQUEST_COUNTER = Counter(
    "voicespan_http_requests_total",
    "HTTP requests served, by route template and status code",
    labelnames=("path", "method", "status"),
)

REQUEST_LATENCY = Histogram(
    "voicespan_http_request_seconds",
    "Wall time from request receipt to response, by route template",
    labelnames=("path", "method"),
)

ANALYSIS_COUNTER = Counter(
    "voicespan_analyses_total",
    "Count of silence analyses by outcome",
    labelnames=("status",),
)

ANALYSIS_DURATION = Summary(
    "voicespan_analysis_seconds",
    "Time spent decoding and segmenting a buffer",
)

router = APIRouter()


@router.get("/metrics")
async def metrics_endpoint(_: str = Depends(get_api_key)) -> Response:
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def instrument_app(app):
    @app.middleware("http")
    async def prometheus_middleware(request, call_next: Callable):  # type: ignore
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        method = request.method
        REQUEST_COUNTER.labels(path=path, method=method, status=response.status_code).inc()
        REQUEST_LATENCY.labels(path=path, method=method).observe(duration)
        return response

    return app
