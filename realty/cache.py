# Fail-open JSON cache for tenant-scoped property reads.
# Keys: properties:v1:{tenant_id}:{kind}:{digest}; all keys of a tenant are dropped on any write to its portfolio.
from __future__ import annotations

import hashlib
import json
import logging
import os
from typing import Any, Optional

from .redis_client import get_redis

logger = logging.getLogger("realty.cache")

CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "3600"))


def _tenant_prefix(tenant_id: str) -> str:
    return f"properties:v1:{tenant_id}:"


def cache_key(tenant_id: str, kind: str, params: dict) -> str:
    """Stable key for a query: identical params (in any order) map to the same key."""
    digest = hashlib.sha1(json.dumps(params, sort_keys=True, default=str).encode("utf-8")).hexdigest()
    return f"{_tenant_prefix(tenant_id)}{kind}:{digest}"


def get_json(key: str) -> Optional[Any]:
    r = get_redis()
    if r is None:
        return None
    try:
        raw = r.get(key)
    except Exception as exc:
        logger.warning("cache get failed (key=%s): %s", key, exc)
        return None
    if raw is None:
        return None
    return json.loads(raw)


def set_json(key: str, value: Any, ttl: int = CACHE_TTL_SECONDS) -> None:
    r = get_redis()
    if r is None:
        return
    try:
        r.set(key, json.dumps(value, default=str), ex=ttl)
    except Exception as exc:
        logger.warning("cache set failed (key=%s): %s", key, exc)


def invalidate_tenant(tenant_id: str) -> int:
    """Drop every cached read for a tenant. Returns the number of keys removed."""
    r = get_redis()
    if r is None:
        return 0
    removed = 0
    try:
        keys = list(r.scan_iter(match=f"{_tenant_prefix(tenant_id)}*", count=500))
        if keys:
            removed = int(r.delete(*keys))
    except Exception as exc:
        logger.warning("cache invalidation failed (tenant=%s): %s", tenant_id, exc)
    return removed
