"""
=============================================================================
PORTFOLIO CONTACT API - RATE LIMITER MODULE
=============================================================================
Fixed-window rate limiting per client address, with a Redis backend for
multi-instance deployments and an in-memory backend otherwise.

Features:
- Fixed window: a key's counter restarts on the first hit after its window
  has fully elapsed (no partial decay)
- Check and increment are one atomic step per key
- Trusted-proxy validation for X-Forwarded-For
- Two limiters: strict for the contact form, lenient for general API traffic
- Standard RateLimit-* response headers

Usage:
    from portfolio_api.core.rate_limiter import check_contact_rate_limit

    @router.post("/contact", dependencies=[Depends(check_contact_rate_limit)])
    def endpoint():
        ...
=============================================================================
"""

import ipaddress
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple

from fastapi import Request, Response

from portfolio_api.core.config import settings
from portfolio_api.core.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

# Parsed trusted proxy networks (built once at import)
_trusted_networks: List[ipaddress.IPv4Network | ipaddress.IPv6Network] = []


def _build_trusted_networks() -> None:
    """Parse TRUSTED_PROXIES setting into network objects."""
    global _trusted_networks
    nets = []
    for entry in settings.TRUSTED_PROXIES:
        try:
            nets.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            logger.warning("Invalid TRUSTED_PROXIES entry ignored: %s", entry)
    _trusted_networks = nets


_build_trusted_networks()


@dataclass(frozen=True)
class RateDecision:
    """Outcome of one rate-limit check."""

    allowed: bool
    limit: int
    count: int
    reset_in: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)


# =============================================================================
# BACKEND ABSTRACTION
# =============================================================================


class _RateLimitBackend(ABC):
    """Abstract rate-limit storage backend."""

    @abstractmethod
    def hit(self, key: str, window_seconds: int) -> Tuple[int, float]:
        """Count one attempt; return (count in current window, seconds until reset)."""

    @abstractmethod
    def reset(self) -> None:
        """Clear all state (for tests)."""


class _InMemoryBackend(_RateLimitBackend):
    """Thread-safe in-memory backend (single-instance only)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = Lock()
        # key -> [count, window_start, window_seconds]
        self._windows: Dict[str, List[float]] = {}
        self._last_sweep = clock()

    def _sweep(self, now: float, window_seconds: int) -> None:
        """Drop windows that have fully elapsed. Caller holds the lock."""
        if now - self._last_sweep < window_seconds:
            return
        expired = [
            key
            for key, (_, started, length) in self._windows.items()
            if now - started >= length
        ]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now
        if expired:
            logger.debug("Rate limiter swept %d stale windows", len(expired))

    def hit(self, key: str, window_seconds: int) -> Tuple[int, float]:
        now = self._clock()
        with self._lock:
            self._sweep(now, window_seconds)
            window = self._windows.get(key)
            if window is None or now - window[1] >= window_seconds:
                window = [0, now, window_seconds]
                self._windows[key] = window
            window[0] += 1
            return int(window[0]), window[1] + window_seconds - now

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._last_sweep = self._clock()


class _RedisBackend(_RateLimitBackend):
    """Redis-backed rate-limit storage for multi-instance deployments."""

    def __init__(self, redis_client) -> None:  # type: ignore[type-arg]
        self._redis = redis_client

    def hit(self, key: str, window_seconds: int) -> Tuple[int, float]:
        pipe = self._redis.pipeline(transaction=True)
        pipe.incr(key)
        pipe.expire(key, window_seconds, nx=True)  # window starts on first hit
        pipe.ttl(key)
        count, _, ttl = pipe.execute()
        reset_in = ttl if ttl and ttl > 0 else window_seconds
        return int(count), float(reset_in)

    def reset(self) -> None:
        cursor = 0
        while True:
            cursor, keys = self._redis.scan(cursor, match="rl:*", count=500)
            if keys:
                self._redis.delete(*keys)
            if cursor == 0:
                break


# =============================================================================
# BACKEND INITIALIZATION
# =============================================================================


def _init_backend() -> _RateLimitBackend:
    """Use Redis when REDIS_URL is set and reachable, in-memory otherwise."""
    if not settings.REDIS_URL:
        logger.info("Rate limiter using in-memory backend")
        return _InMemoryBackend()

    try:
        import redis as _redis_lib

        client = _redis_lib.Redis.from_url(
            settings.REDIS_URL, decode_responses=True, socket_connect_timeout=2
        )
        client.ping()
        logger.info("Rate limiter using Redis backend")
        return _RedisBackend(client)
    except Exception as exc:
        logger.warning(
            "Redis unavailable for rate limiter, using in-memory fallback: %s", exc
        )
        return _InMemoryBackend()


_backend: _RateLimitBackend = _init_backend()


# =============================================================================
# LIMITER
# =============================================================================


class RateLimiter:
    """Fixed-window request cap keyed by client address."""

    def __init__(
        self,
        name: str,
        limit: int,
        window_seconds: int,
        backend: Optional[_RateLimitBackend] = None,
        message: Optional[str] = None,
    ) -> None:
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds
        self.message = message
        self._backend = backend

    @property
    def backend(self) -> _RateLimitBackend:
        return self._backend or _backend

    def check(self, address: str) -> RateDecision:
        count, reset_in = self.backend.hit(f"rl:{self.name}:{address}", self.window_seconds)
        return RateDecision(
            allowed=count <= self.limit,
            limit=self.limit,
            count=count,
            reset_in=max(int(math.ceil(reset_in)), 0),
        )

    def enforce(self, address: str) -> RateDecision:
        """Check ``address`` and raise RateLimitExceeded when over the cap."""
        decision = self.check(address)
        if not decision.allowed:
            logger.warning(
                "Rate limit %s exceeded for %s (%d/%d)",
                self.name,
                address,
                decision.count,
                self.limit,
            )
            raise RateLimitExceeded(
                message=self.message,
                headers={
                    "Retry-After": str(decision.reset_in),
                    **_rate_limit_headers(decision),
                },
            )
        return decision


def _rate_limit_headers(decision: RateDecision) -> Dict[str, str]:
    return {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(decision.reset_in),
    }


contact_limiter = RateLimiter(
    name="contact",
    limit=settings.RATE_LIMIT_MAX,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    message="Too many contact attempts, please try again later.",
)

api_limiter = RateLimiter(
    name="api",
    limit=settings.API_RATE_LIMIT_MAX,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)


# =============================================================================
# IP EXTRACTION
# =============================================================================


def _is_trusted_proxy(ip_str: str) -> bool:
    """Check if an IP belongs to the configured trusted proxy ranges."""
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in net for net in _trusted_networks)


def get_client_ip(request: Request) -> str:
    """Extract client IP, trusting X-Forwarded-For only from trusted proxies."""
    direct_ip = request.client.host if request.client else "unknown"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and _is_trusted_proxy(direct_ip):
        # Rightmost untrusted IP is the real client
        parts = [p.strip() for p in forwarded.split(",") if p.strip()]
        for ip in reversed(parts):
            if not _is_trusted_proxy(ip):
                return ip
        # All IPs in chain are trusted, use leftmost
        if parts:
            return parts[0]

    return direct_ip


# =============================================================================
# PUBLIC RATE-LIMIT DEPENDENCIES
# =============================================================================


async def check_contact_rate_limit(request: Request, response: Response) -> str:
    """Contact form limiter: RATE_LIMIT_MAX attempts per window per IP."""
    client_ip = get_client_ip(request)
    decision = contact_limiter.enforce(client_ip)
    response.headers.update(_rate_limit_headers(decision))
    return client_ip


async def check_api_rate_limit(request: Request, response: Response) -> str:
    """General API limiter: API_RATE_LIMIT_MAX requests per window per IP."""
    client_ip = get_client_ip(request)
    decision = api_limiter.enforce(client_ip)
    response.headers.update(_rate_limit_headers(decision))
    return client_ip


# =============================================================================
# TEST HELPERS
# =============================================================================


def reset_rate_limiter_state() -> None:
    """Clear rate limiter state. Intended for tests."""
    _backend.reset()
