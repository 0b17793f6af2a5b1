"""Sliding-window request admission control.

Two policies are applied per client identity:

- a global window (15 minutes, 100 requests) enforced by middleware on
  every request, and
- a tighter mutating window (1 hour, 5 requests by default) enforced as a
  route dependency on ``/signup``, ``/register`` and ``/upload-file``.

The client identity is the left-most ``X-Forwarded-For`` entry when the
header is present, otherwise the direct peer address. That is only sound
behind exactly one trusted reverse proxy; with more hops, or with the app
exposed directly, the header can be spoofed.
"""
import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass

from fastapi import Request, Response

from reunion.core.config import settings
from reunion.core.errors import RateLimited

logger = logging.getLogger(__name__)

GLOBAL_MESSAGE = "Too many requests from this IP, please try again after 15 minutes"
REGISTRATION_MESSAGE = "Upload limit reached!"


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check."""
    allowed: bool
    limit: int
    remaining: int
    reset_after: float  # seconds until the oldest hit leaves the window

    def headers(self) -> dict[str, str]:
        """Standard ``RateLimit-*`` headers; ``Retry-After`` when rejected."""
        reset = str(max(0, math.ceil(self.reset_after)))
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": reset,
        }
        if not self.allowed:
            headers["Retry-After"] = reset
        return headers


class SlidingWindowLimiter:
    """In-memory sliding window log keyed by client identity.

    Each key keeps the timestamps of its admitted requests within the
    window. A request is admitted while fewer than ``limit`` timestamps
    remain after expired ones are dropped. Rejected requests are not
    recorded, so a throttled client regains capacity as soon as its
    oldest admitted request ages out.

    A key is only stored while it has hits inside the window. Keys that
    are never seen again are swept out at most once per window, so the
    log holds no more than two windows' worth of clients.
    """

    def __init__(self, limit: int, window_seconds: float, message: str, clock=time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + window_seconds

    def __len__(self) -> int:
        """Number of client keys currently tracked."""
        with self._lock:
            return len(self._hits)

    def _prune(self, key: str, cutoff: float) -> deque[float] | None:
        hits = self._hits.get(key)
        if hits is None:
            return None
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
            return None
        return hits

    def _sweep(self, now: float) -> None:
        cutoff = now - self.window_seconds
        for key in list(self._hits):
            self._prune(key, cutoff)
        self._next_sweep = now + self.window_seconds

    def hit(self, key: str) -> RateLimitDecision:
        """Record a request for ``key`` if it fits in the window."""
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)

            hits = self._prune(key, now - self.window_seconds)
            count = len(hits) if hits else 0
            allowed = count < self.limit
            if allowed:
                if hits is None:
                    hits = self._hits[key] = deque()
                hits.append(now)
                count += 1

            reset_after = hits[0] + self.window_seconds - now if hits else 0.0
            remaining = self.limit - count

        return RateLimitDecision(
            allowed=allowed, limit=self.limit, remaining=remaining, reset_after=reset_after
        )

    def check(self, key: str) -> RateLimitDecision:
        """Like ``hit`` but raises ``RateLimited`` on rejection."""
        decision = self.hit(key)
        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for {key} ({self.limit} per {self.window_seconds}s)")
            raise RateLimited(self.message, decision.headers())
        return decision

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def client_identity(request: Request) -> str:
    """Derive the rate-limit key for a request."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client:
        return request.client.host
    return "unknown"


def build_global_limiter() -> SlidingWindowLimiter:
    return SlidingWindowLimiter(
        limit=settings.global_rate_limit,
        window_seconds=settings.global_rate_window_minutes * 60,
        message=GLOBAL_MESSAGE,
    )


def build_registration_limiter() -> SlidingWindowLimiter:
    return SlidingWindowLimiter(
        limit=settings.registration_rate_limit,
        window_seconds=settings.registration_rate_window_minutes * 60,
        message=REGISTRATION_MESSAGE,
    )


def registration_rate_limit(request: Request, response: Response) -> None:
    """Route dependency enforcing the mutating-endpoint window."""
    limiter: SlidingWindowLimiter = request.app.state.registration_limiter
    decision = limiter.check(client_identity(request))
    response.headers.update(decision.headers())
