"""Fixed-window rate limiter keyed by client identity.

Quota accounting is done by the ``limits`` fixed-window strategy. Each
``check`` call consumes one permit whether or not it is allowed; the
limiter knows nothing about what happens to the request afterwards.

Storage backends (``limits.aio.storage``):
  - RedisStorage: shared across processes, used in production
  - MemoryStorage: single process, used in tests and local development

When no backend is configured the service runs in permissive mode
(``PermissiveRateLimit``) and never checks quotas.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Protocol, Union

from limits import RateLimitItem, parse
from limits.aio.storage import RedisStorage, Storage
from limits.aio.strategies import FixedWindowRateLimiter

from roomgen.generation.types import RateLimitDecision

logger = logging.getLogger(__name__)

DEFAULT_RATE = "5/day"
NAMESPACE = "roomgen"
UNKNOWN_IDENTITY = "unknown"


class RateLimiter(Protocol):
    async def check(self, identity: str) -> RateLimitDecision: ...


class FixedWindowLimiter:
    """Per-identity quota on top of a ``limits`` storage.

    Usage:
        limiter = FixedWindowLimiter(MemoryStorage(), parse("5/day"))
        decision = await limiter.check("203.0.113.7")
        if not decision.allowed:
            ...
    """

    def __init__(self, storage: Storage, rate: RateLimitItem | None = None):
        self.storage = storage
        self.rate = rate or parse(DEFAULT_RATE)
        self._strategy = FixedWindowRateLimiter(storage)

    @property
    def limit(self) -> int:
        return self.rate.amount

    @property
    def window_seconds(self) -> int:
        return self.rate.get_expiry()

    async def check(self, identity: str) -> RateLimitDecision:
        allowed = await self._strategy.hit(self.rate, NAMESPACE, identity)
        stats = await self._strategy.get_window_stats(self.rate, NAMESPACE, identity)

        decision = RateLimitDecision(
            allowed=allowed,
            limit=self.limit,
            remaining=stats.remaining,
            reset_after=max(0.0, stats.reset_time - time.time()),
        )
        if not allowed:
            logger.info("Rate limit exceeded for %s (%s)", identity, self.rate)
        return decision


# ---------------------------------------------------------------------------
# Enforced / permissive mode
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EnforcedRateLimit:
    """Quotas are checked through ``limiter`` on every request."""

    limiter: RateLimiter


@dataclass(frozen=True)
class PermissiveRateLimit:
    """No limiter backend configured; every request proceeds."""


RateLimitMode = Union[EnforcedRateLimit, PermissiveRateLimit]


def redis_storage(redis_url: str) -> RedisStorage:
    """Async ``limits`` storage for a plain ``redis://`` / ``rediss://`` URL."""
    uri = redis_url if redis_url.startswith("async+") else f"async+{redis_url}"
    return RedisStorage(uri, implementation="redispy")


def build_rate_limit_mode(storage: Storage | None, rate: str = DEFAULT_RATE) -> RateLimitMode:
    """Pick the rate limit mode for the configured backend."""
    if storage is None:
        logger.warning("Redis not configured, rate limiting disabled (permissive mode)")
        return PermissiveRateLimit()

    item = parse(rate)
    logger.info("Rate limiting enabled: %s per client", item)
    return EnforcedRateLimit(FixedWindowLimiter(storage, item))


def client_identity(real_ip: str | None) -> str:
    """Identity used for quota accounting: the client IP, or a shared sentinel."""
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return UNKNOWN_IDENTITY
