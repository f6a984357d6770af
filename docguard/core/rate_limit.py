"""Rate limiting for expensive read operations.

Sliding-window limits keyed by ``(actor_id, operation_class)``. Each
operation class (for example ``"search"``) has its own limit and window and
is tracked independently.

``InMemoryRateLimiter`` keeps state in process memory, which is correct for
a single instance. Deployments running several instances should use
``RedisRateLimiter`` so the window is shared.
"""

import math
import threading
import time
import uuid
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Mapping, Optional, Tuple

import redis

from docguard.common.logger import get_logger
from docguard.core.config import Settings, get_settings


logger = get_logger(__name__)

# Default rate limits
DEFAULT_RATE_LIMIT = 20  # requests
DEFAULT_RATE_WINDOW = 60  # seconds


@dataclass(frozen=True)
class RateLimitRule:
    limit: int = DEFAULT_RATE_LIMIT
    window: int = DEFAULT_RATE_WINDOW


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0


class RateLimiter(ABC):
    """Interface consulted by the document service before fetching."""

    def __init__(
        self,
        rules: Optional[Mapping[str, RateLimitRule]] = None,
        default_rule: RateLimitRule = RateLimitRule(),
    ):
        self.rules = dict(rules or {})
        self.default_rule = default_rule

    def rule_for(self, operation_class: str) -> RateLimitRule:
        return self.rules.get(operation_class, self.default_rule)

    @abstractmethod
    def hit(self, actor_id, operation_class: str) -> RateLimitDecision:
        """Count one call and report whether it is within the limit."""


class InMemoryRateLimiter(RateLimiter):
    """Process-local sliding window log.

    Expired timestamps are discarded lazily on access; there is no timer
    thread. Rejected calls are not counted against the window. Keys whose
    window has fully expired are swept at most once per longest window.
    """

    def __init__(
        self,
        rules: Optional[Mapping[str, RateLimitRule]] = None,
        default_rule: RateLimitRule = RateLimitRule(),
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(rules, default_rule)
        self._clock = clock
        self._hits: Dict[Tuple[str, str], Deque[float]] = {}
        self._lock = threading.Lock()
        self._sweep_interval = max([r.window for r in self.rules.values()] + [default_rule.window])
        self._last_sweep = clock()

    def hit(self, actor_id, operation_class: str) -> RateLimitDecision:
        rule = self.rule_for(operation_class)
        key = (str(actor_id), operation_class)
        now = self._clock()
        window_start = now - rule.window

        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep(now)

            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= window_start:
                hits.popleft()

            if len(hits) >= rule.limit:
                retry_after = max(1, math.ceil(hits[0] + rule.window - now))
                return RateLimitDecision(False, rule.limit, 0, retry_after)

            hits.append(now)
            return RateLimitDecision(True, rule.limit, rule.limit - len(hits))

    def _sweep(self, now: float) -> None:
        """Drop keys with no timestamp left inside their window. Lock held."""
        for key in list(self._hits):
            window = self.rule_for(key[1]).window
            hits = self._hits[key]
            if not hits or hits[-1] <= now - window:
                del self._hits[key]
        self._last_sweep = now

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


# Trim, count and insert run as one server-side step.
# KEYS[1] = window key
# ARGV = now, window_start, limit, member, window seconds
# Returns {allowed, count_after, oldest_score}
SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
redis.call('ZREMRANGEBYSCORE', key, 0, ARGV[2])
local count = redis.call('ZCARD', key)
if count >= tonumber(ARGV[3]) then
    local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    return {0, count, oldest[2] or ARGV[1]}
end
redis.call('ZADD', key, ARGV[1], ARGV[4])
redis.call('EXPIRE', key, tonumber(ARGV[5]))
return {1, count + 1, ARGV[1]}
"""


class RedisRateLimiter(RateLimiter):
    """Sliding window on a Redis sorted set, shared across instances.

    Fails open when Redis is unreachable.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        rules: Optional[Mapping[str, RateLimitRule]] = None,
        default_rule: RateLimitRule = RateLimitRule(),
        client: Optional[redis.Redis] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(rules, default_rule)
        self.redis_url = redis_url or get_settings().redis_url
        self._redis = client
        self._clock = clock
        self._script = None

    def get_redis(self) -> redis.Redis:
        """Get or create Redis connection."""
        if self._redis is None:
            self._redis = redis.Redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        return self._redis

    def get_script(self):
        if self._script is None:
            self._script = self.get_redis().register_script(SLIDING_WINDOW_SCRIPT)
        return self._script

    def _get_key(self, actor_id, operation_class: str) -> str:
        return f"ratelimit:{operation_class}:{actor_id}"

    def hit(self, actor_id, operation_class: str) -> RateLimitDecision:
        rule = self.rule_for(operation_class)
        key = self._get_key(actor_id, operation_class)
        now = self._clock()
        window_start = now - rule.window

        try:
            allowed, count, oldest = self.get_script()(
                keys=[key],
                args=[now, window_start, rule.limit, f"{now}:{uuid.uuid4().hex}", rule.window],
            )
        except redis.RedisError:
            logger.warning("Rate limit backend unavailable, allowing %s request", operation_class)
            return RateLimitDecision(True, rule.limit, rule.limit)

        if not int(allowed):
            retry_after = max(1, math.ceil(float(oldest) + rule.window - now))
            return RateLimitDecision(False, rule.limit, 0, retry_after)
        return RateLimitDecision(True, rule.limit, max(0, rule.limit - int(count)))


def rules_from_settings(settings: Settings) -> Dict[str, RateLimitRule]:
    return {
        "search": RateLimitRule(settings.rate_limit_search, settings.rate_limit_window),
        "list": RateLimitRule(settings.rate_limit_list, settings.rate_limit_window),
    }


def build_rate_limiter(settings: Optional[Settings] = None) -> RateLimiter:
    """Create the configured rate limiter backend."""
    settings = settings or get_settings()
    rules = rules_from_settings(settings)
    default_rule = RateLimitRule(DEFAULT_RATE_LIMIT, settings.rate_limit_window)
    if settings.rate_limit_backend == "redis":
        return RedisRateLimiter(settings.redis_url, rules=rules, default_rule=default_rule)
    if settings.rate_limit_backend != "memory":
        raise ValueError(f"Unknown rate limit backend: {settings.rate_limit_backend}")
    return InMemoryRateLimiter(rules=rules, default_rule=default_rule)
