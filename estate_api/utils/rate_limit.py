"""
Fixed-window rate limiting for the AI endpoints.
State is a process-local map from key to its current window; it is not
shared between worker processes.
"""

from typing import Callable, Dict, Any, Hashable
import logging
import math
import time

from estate_api.config import settings
from estate_api.utils.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """
    Allow ``max_requests`` per key inside a window of ``window_seconds``.

    A window opens on the first request for a key and lasts until
    ``window_seconds`` have elapsed; the next request after that opens a
    fresh window. The clock is injectable so tests can move time by hand.
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        prune_threshold: int = 10000
    ):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.prune_threshold = prune_threshold
        self.request_counts: Dict[Hashable, Dict[str, Any]] = {}

    def hit(self, key: Hashable) -> int:
        """
        Record one request for ``key``.

        Returns:
            Requests remaining in the current window

        Raises:
            RateLimitExceededError: If the key already used its quota
        """
        now = self.clock()
        entry = self.request_counts.get(key)

        if entry is None or now - entry["window_start"] > self.window_seconds:
            if len(self.request_counts) >= self.prune_threshold:
                self._clean_expired(now)
            self.request_counts[key] = {"count": 1, "window_start": now}
            return self.max_requests - 1

        if entry["count"] >= self.max_requests:
            retry_after = max(1, math.ceil(entry["window_start"] + self.window_seconds - now))
            logger.warning(
                f"Rate limit '{self.name}' exceeded for {key}",
                extra={"limiter": self.name, "key": str(key), "retry_after": retry_after}
            )
            raise RateLimitExceededError(retry_after)

        entry["count"] += 1
        return self.max_requests - entry["count"]

    def reset(self) -> None:
        self.request_counts.clear()

    def _clean_expired(self, now: float) -> None:
        expired = [
            key for key, entry in self.request_counts.items()
            if now - entry["window_start"] > self.window_seconds
        ]
        for key in expired:
            del self.request_counts[key]


# Description generation is keyed by user id, chat by client IP
description_rate_limiter = FixedWindowRateLimiter(
    "ai-description",
    max_requests=settings.description_rate_limit,
    window_seconds=settings.ai_rate_limit_window_seconds,
)

chat_rate_limiter = FixedWindowRateLimiter(
    "ai-chat",
    max_requests=settings.chat_rate_limit,
    window_seconds=settings.ai_rate_limit_window_seconds,
)
