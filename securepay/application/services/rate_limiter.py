"""Fixed-window rate limiting for sensitive endpoints."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

import structlog

from securepay.config import Settings
from securepay.core.exceptions import RateLimitedException

logger = structlog.get_logger(__name__)

# Expired windows are swept once the map grows past this many keys
PRUNE_THRESHOLD = 10_000


@dataclass(frozen=True)
class RateLimitPolicy:
    action: str
    max_requests: int
    window_seconds: float
    message: str


@dataclass
class _Window:
    count: int
    reset_time: float


class RateLimiter:
    """Per-key request counter that resets once its window has elapsed.

    A burst straddling a window boundary can get up to twice the limit
    through; acceptable for abuse damping.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def allow(self, key: str, max_requests: int, window_seconds: float) -> bool:
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None or now > window.reset_time:
                if len(self._windows) >= PRUNE_THRESHOLD:
                    self._prune(now)
                self._windows[key] = _Window(count=1, reset_time=now + window_seconds)
                return True
            window.count += 1
            return window.count <= max_requests

    def check(self, policy: RateLimitPolicy, origin: str) -> None:
        """Raise RateLimitedException when the origin exceeded the policy."""
        key = f"{policy.action}:{origin}"
        if not self.allow(key, policy.max_requests, policy.window_seconds):
            logger.warning("Rate limit exceeded", key=key, limit=policy.max_requests)
            raise RateLimitedException(policy.message)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now > window.reset_time]
        for key in expired:
            del self._windows[key]


def build_policies(settings: Settings) -> Dict[str, RateLimitPolicy]:
    return {
        "register": RateLimitPolicy(
            action="register",
            max_requests=settings.RATE_LIMIT_REGISTER_MAX,
            window_seconds=settings.RATE_LIMIT_REGISTER_WINDOW_SECONDS,
            message="Too many registration attempts. Please try again later.",
        ),
        "login": RateLimitPolicy(
            action="login",
            max_requests=settings.RATE_LIMIT_LOGIN_MAX,
            window_seconds=settings.RATE_LIMIT_LOGIN_WINDOW_SECONDS,
            message="Too many login attempts. Please try again later.",
        ),
        "payments": RateLimitPolicy(
            action="payments",
            max_requests=settings.RATE_LIMIT_PAYMENTS_MAX,
            window_seconds=settings.RATE_LIMIT_PAYMENTS_WINDOW_SECONDS,
            message="Payment limit exceeded. Please try again later.",
        ),
    }
