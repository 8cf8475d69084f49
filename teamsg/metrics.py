from __future__ import annotations

import os
import time
from typing import Any, Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()
REQUESTS = Counter(
    "requests_total", "HTTP requests", ["path", "method", "status"], registry=REGISTRY
)
LATENCY = Histogram(
    "request_latency_seconds",
    "Request latency (seconds)",
    ["path", "method"],
    registry=REGISTRY,
)
SHOT_REPLACEMENTS = Counter(
    "shot_replacements_total", "Shot sets replaced", registry=REGISTRY
)
SG_COMPUTATIONS = Counter(
    "sg_round_computations_total",
    "Round strokes-gained computations",
    ["model", "outcome"],
    registry=REGISTRY,
)
SG_CACHE = Counter(
    "sg_cache_total", "Round SG cache lookups", ["result"], registry=REGISTRY
)
LEADERBOARD_BUILD_SECONDS = Histogram(
    "leaderboard_build_seconds",
    "Leaderboard build time (seconds)",
    ["scope"],
    registry=REGISTRY,
)

BUILD_VERSION = os.getenv("BUILD_VERSION", "dev")
GIT_SHA = os.getenv("GIT_SHA", "unknown")


# Path segments following these collections are ids; collapsed to keep
# label cardinality bounded.
_ID_PARENTS = {"rounds", "players", "models"}
_FIXED_SEGMENTS = {"template"}


def path_label(path: str) -> str:
    parts = path.split("/")
    for index in range(1, len(parts)):
        if parts[index - 1] in _ID_PARENTS and parts[index] not in _FIXED_SEGMENTS:
            parts[index] = "{id}"
    return "/".join(parts)


async def metrics_app(_req: Request | None = None) -> Response:
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


class MetricsMiddleware:
    """ASGI middleware counting requests and timing them per route shape."""

    def __init__(self, app: Callable[..., Awaitable[Any]]):
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Awaitable[Any]],
        send: Callable[..., Awaitable[Any]],
    ) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        labels = {
            "path": path_label(scope.get("path", "")),
            "method": scope.get("method", "GET"),
        }
        started = time.perf_counter()
        response_status = {"code": 500}

        async def _record_status(message: dict[str, Any]) -> None:
            if message.get("type") == "http.response.start":
                response_status["code"] = message.get("status", 200)
            await send(message)

        try:
            await self.app(scope, receive, _record_status)
        finally:
            LATENCY.labels(**labels).observe(time.perf_counter() - started)
            REQUESTS.labels(status=str(response_status["code"]), **labels).inc()


__all__ = [
    "REGISTRY",
    "REQUESTS",
    "LATENCY",
    "SHOT_REPLACEMENTS",
    "SG_COMPUTATIONS",
    "SG_CACHE",
    "LEADERBOARD_BUILD_SECONDS",
    "BUILD_VERSION",
    "GIT_SHA",
    "metrics_app",
    "path_label",
    "MetricsMiddleware",
]
