"""
Cloudflare Turnstile verification for the public booking form
"""

import hashlib
import logging
from typing import Optional

import httpx

from .config import TURNSTILE_SECRET_KEY, TURNSTILE_TIMEOUT_SECONDS, TURNSTILE_VERIFY_URL
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

# Successful verifications are remembered briefly so a client retrying the
# same submission is not rejected for reusing its token
VERIFIED_CACHE_SECONDS = 300


async def verify_turnstile(token: Optional[str], ip: Optional[str] = None) -> bool:
    """
    Verify a Turnstile token.

    Returns True when verification is not configured. A missing token, a
    rejected token or an unreachable verification service all return False.
    """
    if not TURNSTILE_SECRET_KEY:
        logger.warning("⚠️ TURNSTILE_SECRET_KEY not configured - skipping human verification")
        return True

    if not token:
        logger.warning(f"❌ Booking submitted without a Turnstile token from IP: {ip}")
        return False

    cache_key = f"turnstile_verified:{hashlib.sha256(f'{token}:{ip}'.encode()).hexdigest()}"
    redis_client = None
    try:
        redis_client = get_redis_client()
        if redis_client.get(cache_key):
            logger.info(f"✅ Turnstile verification cached for IP: {ip}")
            return True
    except Exception as redis_error:
        logger.warning(f"⚠️ Redis cache check failed: {redis_error}")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                TURNSTILE_VERIFY_URL,
                json={"secret": TURNSTILE_SECRET_KEY, "response": token, "remoteip": ip},
                timeout=TURNSTILE_TIMEOUT_SECONDS,
            )
        result = response.json()
    except Exception as e:
        logger.error(f"❌ Turnstile verification error: {str(e)}")
        return False

    success = bool(result.get("success", False))
    if success:
        logger.info(f"✅ Turnstile verification successful for IP: {ip}")
        if redis_client is not None:
            try:
                redis_client.setex(cache_key, VERIFIED_CACHE_SECONDS, "verified")
            except Exception as redis_error:
                logger.warning(f"⚠️ Redis cache set failed: {redis_error}")
    else:
        logger.warning(
            f"❌ Turnstile verification failed for IP: {ip} - Errors: {result.get('error-codes', [])}"
        )
    return success
