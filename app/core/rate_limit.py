"""
Simple in-memory rate limiter for the login endpoints.
"""
import logging
import time
from collections import defaultdict
from typing import Callable, Dict, List
from fastapi import Request

from app.core.errors import RateLimited

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """Extract client IP address from request."""
    # Check for forwarded IP (from proxy/load balancer)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


class RateLimiter:
    """Sliding-window request counter keyed by client IP and scope."""

    def __init__(self, max_requests: int = 10, window_seconds: int = 60, clock: Callable[[], float] = time.time):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: Dict[str, List[float]] = defaultdict(list)

    def check(self, key: str) -> None:
        """
        Record a request for `key`.

        Raises:
            RateLimited: if `key` already made max_requests in the window
        """
        now = self.clock()
        cutoff = now - self.window_seconds
        self._hits[key] = [t for t in self._hits[key] if t > cutoff]

        request_count = len(self._hits[key])
        if request_count >= self.max_requests:
            logger.warning(f"Rate limit exceeded for {key} ({request_count} requests in {self.window_seconds}s)")
            raise RateLimited(
                f"Rate limit exceeded. Maximum {self.max_requests} requests per {self.window_seconds} seconds."
            )

        self._hits[key].append(now)

    def reset(self) -> None:
        self._hits.clear()

    def dependency(self, scope: str) -> Callable:
        """FastAPI dependency limiting `scope` per client IP."""
        def limit(request: Request) -> None:
            self.check(f"{scope}:{get_client_ip(request)}")
        return limit


login_limiter = RateLimiter(max_requests=10, window_seconds=60)
