"""Redis-backed per-IP rate limiting for link endpoints (fail-open)."""
import ipaddress
import logging

import redis
from redis.exceptions import RedisError
from fastapi import HTTPException, Request, status

from .config import settings

logger = logging.getLogger(__name__)


_redis_client = None


def _get_redis():
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


def get_client_ip(request: Request) -> str:
    if settings.TRUST_PROXY_HEADERS:
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            try:
                ipaddress.ip_address(real_ip)
                return real_ip
            except ValueError:
                pass

        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # X-Forwarded-For may contain a list: client, proxy1, proxy2
            candidate = forwarded.split(",")[0].strip()
            try:
                ipaddress.ip_address(candidate)
                return candidate
            except ValueError:
                pass

    if request.client:
        return request.client.host
    return "unknown"


def _incr_with_ttl(key: str, ttl_seconds: int) -> tuple[int, int]:
    """
    Increment a Redis counter and ensure it has an expiry.
    Returns (value, ttl_remaining_seconds).
    """
    r = _get_redis()
    value = r.incr(key)
    if value == 1:
        r.expire(key, ttl_seconds)
    ttl = r.ttl(key)
    if ttl is None or ttl < 0:
        ttl = ttl_seconds
    return int(value), int(ttl)


def enforce_link_resolve_rate_limit(request: Request) -> None:
    """Cap link-code guesses per client IP per minute."""
    ip = get_client_ip(request)
    try:
        attempts, ttl = _incr_with_ttl(f"link:rl:resolve:ip:{ip}", 60)
    except RedisError:
        # Fail open if Redis is down; the code TTL still bounds the guessing window.
        logger.exception("Redis error during link rate limiting (fail-open)")
        return

    if attempts > settings.LINK_RESOLVE_IP_LIMIT_PER_MINUTE:
        logger.warning("link.rate_limited ip=%s attempts=%s", ip, attempts)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many link attempts. Try again later.",
            headers={"Retry-After": str(ttl)},
        )
