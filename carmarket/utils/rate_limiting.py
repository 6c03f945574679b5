"""Rate decisions for the public image search."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from carmarket.config import RateLimitSettings
from carmarket.utils.cache import CacheService
from carmarket.utils.errors import RateLimitedError, RequestBlockedError

logger = logging.getLogger(__name__)


class DenyReason(str, Enum):
    RATE_LIMIT = "RATE_LIMIT"
    BOT = "BOT"


@dataclass
class RequestContext:
    """What the rate decision knows about a caller."""

    client_key: str
    user_agent: Optional[str] = None


@dataclass
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    remaining: int = 0
    reset_in_seconds: int = 0
    details: Dict[str, Union[int, float]] = field(default_factory=dict)

    def is_rate_limit(self) -> bool:
        return self.reason == DenyReason.RATE_LIMIT

    def raise_for_denial(self) -> None:
        """Raise the error matching a denial; do nothing when allowed."""
        if self.allowed:
            return
        if self.is_rate_limit():
            raise RateLimitedError(remaining=self.remaining, reset_in_seconds=self.reset_in_seconds)
        raise RequestBlockedError(reason=self.reason.value if self.reason else "blocked")


class RateLimiter:
    """Sliding-window rate limiting using Redis counters."""

    def __init__(
        self,
        cache: CacheService,
        capacity: int = 10,
        window_seconds: int = 3600,
        key_prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the rate limiter.

        Args:
            cache: Cache holding the counters
            capacity: Maximum weighted cost per window
            window_seconds: Window length
            key_prefix: Redis key prefix for rate limit counters
            clock: Time source, seconds since the epoch
        """
        self.cache = cache
        self.capacity = capacity
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    async def hit(self, key: str, cost: int = 1) -> Decision:
        """Record `cost` against `key` and decide whether it is over the limit.

        Args:
            key: Identifier for the client (e.g., IP address, user id)
            cost: Weight of this request

        Returns:
            The decision with remaining quota and reset time
        """
        now = self.clock()
        current_window = int(now // self.window_seconds)

        current_key = f"{self.key_prefix}:{key}:{current_window}"
        previous_key = f"{self.key_prefix}:{key}:{current_window - 1}"

        current_count = await self.cache.increment(current_key, cost)
        # Keep two windows around so the previous one can be weighted in
        await self.cache.expire(current_key, self.window_seconds * 2)

        previous_count = await self.cache.get(previous_key)
        previous_count = int(previous_count) if previous_count else 0

        # Half weight for the previous window
        weighted_rate = current_count + (previous_count * 0.5)
        is_limited = weighted_rate > self.capacity
        reset_in = (current_window + 1) * self.window_seconds - int(now)

        return Decision(
            allowed=not is_limited,
            reason=DenyReason.RATE_LIMIT if is_limited else None,
            remaining=max(0, int(self.capacity - weighted_rate)),
            reset_in_seconds=reset_in,
            details={
                "current_rate": current_count,
                "weighted_rate": weighted_rate,
                "limit": self.capacity,
            },
        )


class RateDecisionService:
    """Approves or denies a request before any costly downstream work."""

    def __init__(self, settings: RateLimitSettings, limiter: RateLimiter):
        self.settings = settings
        self.limiter = limiter
        self.blocked_agents: List[str] = [agent.lower() for agent in settings.blocked_user_agents]
        self.logger = logging.getLogger(__name__)

    def _looks_automated(self, user_agent: Optional[str]) -> bool:
        if not user_agent or not user_agent.strip():
            return True
        agent = user_agent.lower()
        return any(pattern in agent for pattern in self.blocked_agents)

    async def admit(self, context: RequestContext, requested: int = 1) -> Decision:
        """Decide whether a request may proceed.

        Args:
            context: Caller key and user agent
            requested: Cost weight of the request

        Returns:
            Allow, or a denial carrying its reason
        """
        if not self.settings.enabled:
            return Decision(allowed=True, remaining=self.limiter.capacity)

        if self._looks_automated(context.user_agent):
            self.logger.info(f"Blocked automated client {context.client_key}")
            return Decision(allowed=False, reason=DenyReason.BOT)

        decision = await self.limiter.hit(context.client_key, requested)
        if decision.is_rate_limit():
            self.logger.warning(
                "Rate limit exceeded",
                extra={
                    "code": "RATE_LIMIT_EXCEEDED",
                    "client_key": context.client_key,
                    "remaining": decision.remaining,
                    "reset_in_seconds": decision.reset_in_seconds,
                    **decision.details,
                },
            )
        return decision
