from slowapi import Limiter
from slowapi.util import get_remote_address
from app.core.config import settings
from loguru import logger

# ----------------------------------------------------------------
# 1. CLIENT IP IDENTIFICATION
# ----------------------------------------------------------------
def get_real_ip(request):
    """
    Identifies the client IP behind proxies.
    Checks X-Forwarded-For, then X-Real-IP.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Leftmost IP is the actual client
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)

# ----------------------------------------------------------------
# 2. INITIALIZE LIMITER WITH FAIL-OVER LOGIC
# ----------------------------------------------------------------
storage_uri = settings.REDIS_URL

try:
    if storage_uri:
        logger.info("Initializing Rate Limiter with Redis Storage")
        limiter = Limiter(
            key_func=get_real_ip,
            storage_uri=storage_uri,
            strategy="fixed-window",
            enabled=settings.RATE_LIMIT_ENABLED,
        )
    else:
        logger.info("REDIS_URL not set. Using in-memory rate limiting.")
        limiter = Limiter(key_func=get_real_ip, enabled=settings.RATE_LIMIT_ENABLED)

except Exception as e:
    logger.error(f"Failed to connect to Redis for Rate Limiting: {e}")
    # Always fall back to memory so the API stays alive
    limiter = Limiter(key_func=get_real_ip, enabled=settings.RATE_LIMIT_ENABLED)
