"""Rate limiting utilities using throttled-py"""
import os
import logging
from datetime import timedelta
from throttled import Throttled, RateLimiterType, store, rate_limiter

logger = logging.getLogger("marketplace")

# Initialize storage - Redis for production, MemoryStore for development
_storage_type = "memory"
try:
    redis_url = os.getenv("REDIS_URL", "").strip()
    if redis_url:
        # RedisStore expects the URL string, not a Redis client object
        storage = store.RedisStore(server=redis_url)
        _storage_type = "redis"
        logger.info("[rate_limit] Using Redis for rate limiting")
    else:
        storage = store.MemoryStore()
        logger.warning("[rate_limit] REDIS_URL not set - using in-memory storage (not suitable for production with multiple workers)")
except Exception as ex:
    storage = store.MemoryStore()
    logger.warning(f"[rate_limit] Redis connection failed, using in-memory storage: {ex}")

DISCOUNT_ATTEMPT_LIMIT = int(os.getenv("DISCOUNT_ATTEMPT_LIMIT", "20"))
ADMIN_WRITE_LIMIT = int(os.getenv("ADMIN_WRITE_LIMIT", "60"))

# Discount code attempts: 20 per user per 10 minutes (code guessing)
discount_throttle = Throttled(
    using=RateLimiterType.FIXED_WINDOW.value,
    quota=rate_limiter.per_duration(timedelta(minutes=10), limit=DISCOUNT_ATTEMPT_LIMIT),
    store=storage,
)

# Admin dashboard writes: 60 per user per minute
admin_throttle = Throttled(
    using=RateLimiterType.FIXED_WINDOW.value,
    quota=rate_limiter.per_duration(timedelta(minutes=1), limit=ADMIN_WRITE_LIMIT),
    store=storage,
)


def check_discount_rate_limit(user_id: str) -> tuple[bool, str]:
    """
    Returns:
        Tuple of (allowed: bool, error_message: str)
    """
    try:
        result = discount_throttle.limit(f"discount_attempt:{user_id}", cost=1)
        if result.limited:
            return False, "Too many discount code attempts. Please try again later."
        return True, ""
    except Exception as ex:
        logger.warning(f"[rate_limit] Discount rate limit check failed: {ex}")
        # Fail open - allow the attempt if rate limiter fails
        return True, ""


def check_admin_rate_limit(user_id: str) -> tuple[bool, str]:
    try:
        result = admin_throttle.limit(f"admin_write:{user_id}", cost=1)
        if result.limited:
            return False, "Too many requests. Please slow down."
        return True, ""
    except Exception as ex:
        logger.warning(f"[rate_limit] Admin rate limit check failed: {ex}")
        return True, ""
