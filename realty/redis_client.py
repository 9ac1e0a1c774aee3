# Shared Redis connection used by the property cache and the rate limiter.
# Opt-in via REDIS_ENABLED; every caller must tolerate get_redis() returning None.
import logging
import os
from typing import Optional

_logger = logging.getLogger("realty.redis")


def truthy(val: Optional[str]) -> bool:
    """Parse an env flag (1, true, yes, on)."""
    if val is None:
        return False
    return val.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def is_redis_enabled() -> bool:
    return truthy(os.getenv("REDIS_ENABLED", "false"))


# Connected client, plus a guard so a failed connect is not retried on every request
_client = None
_initialized = False


def get_redis():
    """
    Return a connected Redis client, or None when Redis is disabled or unreachable.

    The first call connects and pings. A failed attempt is remembered for the
    life of the process, so callers degrade to their no-cache path cheaply.
    """
    global _client, _initialized
    if not is_redis_enabled():
        return None
    if _client is not None:
        return _client
    if _initialized:
        return None

    url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    _initialized = True
    try:
        import redis

        client = redis.Redis.from_url(
            url,
            socket_timeout=0.25,
            socket_connect_timeout=0.25,
            retry_on_timeout=False,
            health_check_interval=0,
            decode_responses=True,
        )
        client.ping()
    except Exception as exc:
        _logger.warning("Redis unavailable (fail-open): %s", exc)
        return None

    _client = client
    _logger.info("Connected to Redis at %s", url)
    return _client


def reset_redis() -> None:
    """Forget the cached connection so the next get_redis() reconnects."""
    global _client, _initialized
    _client = None
    _initialized = False
