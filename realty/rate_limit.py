# Redis-backed fixed-window rate limiter, used as a FastAPI dependency.
# Keys: rl:v1:ip:{ip}:{scope}. Fails open when Redis is disabled or unreachable.
import os
import logging
from typing import Callable, Dict, Literal, Optional, Tuple

from fastapi import Request, HTTPException, status

from .redis_client import get_redis, is_redis_enabled

logger = logging.getLogger("realty.rate_limit")

Scope = Literal["login", "signup", "write", "import"]

# scope -> (env var with the per-window cap, default cap)
_SCOPE_LIMITS: Dict[str, Tuple[str, int]] = {
    "login": ("RATE_LIMIT_LOGIN_PER_WINDOW", 10),
    "signup": ("RATE_LIMIT_SIGNUP_PER_WINDOW", 5),
    "write": ("RATE_LIMIT_WRITE_PER_WINDOW", 30),
    # CSV uploads are heavy; keep the cap low
    "import": ("RATE_LIMIT_IMPORT_PER_WINDOW", 5),
}


def _to_int(val: Optional[str], default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


def _window_seconds() -> int:
    return _to_int(os.getenv("RATE_LIMIT_WINDOW_SECONDS"), 60)


def _limit_for_scope(scope: Scope) -> int:
    env_var, default = _SCOPE_LIMITS[scope]
    return _to_int(os.getenv(env_var), default)


def _client_ip(request: Request) -> str:
    # Remote address only; X-Forwarded-For is not trusted here
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(scope: Scope) -> Callable[[Request], None]:
    """
    Fixed-window limiter keyed by client IP and scope.

    The first hit in a window sets the key's TTL to RATE_LIMIT_WINDOW_SECONDS;
    hits beyond the scope's cap get 429 with a retry_after hint until it expires.
    """
    window = _window_seconds()
    limit = _limit_for_scope(scope)

    def _dependency(request: Request) -> None:
        if not is_redis_enabled():
            return
        r = get_redis()
        if r is None:
            return

        ip = _client_ip(request)
        key = f"rl:v1:ip:{ip}:{scope}"
        try:
            current = r.incr(key, amount=1)
            if current == 1:
                r.expire(key, window)
            if current > limit:
                ttl = r.ttl(key)
                retry_after = ttl if isinstance(ttl, int) and ttl > 0 else window
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail={
                        "error": "rate_limited",
                        "scope": scope,
                        "limit": limit,
                        "window_seconds": window,
                        "retry_after": retry_after,
                    },
                    headers={"Retry-After": str(retry_after)},
                )
        except HTTPException:
            raise
        except Exception as exc:
            logger.warning("Rate limit fail-open (scope=%s, ip=%s): %s", scope, ip, exc)

    return _dependency
