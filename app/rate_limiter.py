"""
Redis fixed-window rate limiting for public endpoints
"""

import logging
import os
import time
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .config import BOOKING_RATE_LIMIT, BOOKING_RATE_WINDOW_SECONDS

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Get or create the shared Redis client (REDIS_URL, or REDIS_HOST and friends)"""
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")
        if redis_url:
            logger.info("📡 Using Redis URL connection")
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        else:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", "6379"))
            logger.info(f"📡 Using Redis at {redis_host}:{redis_port}")
            client = redis.Redis(
                host=redis_host,
                port=redis_port,
                password=os.getenv("REDIS_PASSWORD"),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        client.ping()
        redis_client = client
        logger.info("Redis connected successfully")

    return redis_client


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def check_rate_limit(client: redis.Redis, key: str, limit: int, window_seconds: int) -> tuple[bool, int, int]:
    """
    Count one request against a fixed window.

    Returns (is_allowed, current_count, ttl_seconds).
    """
    window = int(time.time()) // window_seconds
    window_key = f"{key}:{window}"

    pipe = client.pipeline()
    pipe.incr(window_key)
    pipe.expire(window_key, window_seconds)
    count, _ = pipe.execute()

    ttl = window_seconds - int(time.time()) % window_seconds
    return count <= limit, count, ttl


async def rate_limit_dependency(
    request: Request, limit: int, window_seconds: int, key_prefix: str = "rate_limit"
):
    """
    FastAPI dependency for per-IP rate limiting.

    Redis being unreachable lets the request through; the booking engine does
    not depend on the limiter for correctness.
    """
    client_ip = get_client_ip(request)
    key = f"{key_prefix}:{client_ip}"

    try:
        is_allowed, current_count, ttl = check_rate_limit(
            get_redis_client(), key, limit, window_seconds
        )
    except Exception as e:
        logger.error(f"❌ Rate limiting error: {str(e)}")
        return

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise HTTPException(
            status_code=429,
            detail={
                "message": f"Too many requests. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after": ttl,
                "limit": limit,
                "window_seconds": window_seconds,
            },
            headers={"Retry-After": str(ttl)},
        )

    request.state.rate_limit_remaining = limit - current_count


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """Create a rate limiter dependency with specific parameters"""

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter


rate_limit_booking_per_ip = create_rate_limiter(
    limit=BOOKING_RATE_LIMIT,
    window_seconds=BOOKING_RATE_WINDOW_SECONDS,
    key_prefix="booking",
)
