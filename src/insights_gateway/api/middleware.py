"""HTTP middleware: per-client rate limiting and request logging."""

from __future__ import annotations

import math
import time
from collections import deque
from collections.abc import Callable

import logfire
from fastapi import FastAPI, Request

from insights_gateway.api.error_handlers import error_response
from insights_gateway.core.exceptions import RateLimitError


class SlidingWindowRateLimiter:
    """Allows ``limit`` requests per rolling ``window_seconds`` for each client key."""

    def __init__(
        self,
        limit: int = 100,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    @property
    def tracked_clients(self) -> int:
        """Number of client keys currently held in memory."""
        return len(self._hits)

    def _prune(self, hits: deque[float], now: float) -> None:
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        # Drop clients whose every request has left the window, at most once per window
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        stale = [
            key
            for key, hits in self._hits.items()
            if not hits or now - hits[-1] >= self.window_seconds
        ]
        for key in stale:
            del self._hits[key]

    def hit(self, key: str) -> tuple[bool, int, float]:
        """Record a request for ``key``.

        Returns:
            (allowed, remaining, seconds until the window frees a slot)
        """
        now = self._clock()
        self._sweep(now)
        hits = self._hits.setdefault(key, deque())
        self._prune(hits, now)
        if len(hits) >= self.limit:
            reset = self.window_seconds - (now - hits[0])
            return False, 0, reset
        hits.append(now)
        reset = self.window_seconds - (now - hits[0])
        return True, self.limit - len(hits), reset

    def reset(self) -> None:
        self._hits.clear()


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def install_rate_limiting(app: FastAPI, limiter: SlidingWindowRateLimiter) -> None:
    """Reject requests over the limit before any route handler runs."""

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        client = _client_key(request)
        allowed, remaining, reset = limiter.hit(client)
        reset_seconds = max(math.ceil(reset), 1)
        headers = {
            "x-ratelimit-limit": str(limiter.limit),
            "x-ratelimit-remaining": str(remaining),
            "x-ratelimit-reset": str(reset_seconds),
        }

        if not allowed:
            error = RateLimitError(
                limit=limiter.limit,
                window_seconds=int(limiter.window_seconds),
                retry_after=reset_seconds,
            )
            logfire.warning("Rate limit exceeded", client=client, path=request.url.path)
            headers["retry-after"] = str(reset_seconds)
            return error_response(error.status_code, error.message, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


def install_request_logging(app: FastAPI) -> None:
    """Log method, path, status and latency of every request."""

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logfire.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                status_code=500,
                duration_ms=round((time.perf_counter() - started) * 1000.0, 2),
            )
            raise

        logfire.info(
            "{method} {path} {status_code}",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000.0, 2),
            client=_client_key(request),
        )
        return response


__all__ = ["SlidingWindowRateLimiter", "install_rate_limiting", "install_request_logging"]
