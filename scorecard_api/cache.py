# scorecard_api/cache.py
from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, Tuple

# In-process TTL cache used for slow-changing provider metadata
# (the discovered model list). key -> (expires_at_epoch, value)
_cache: Dict[str, Tuple[float, Any]] = {}


def make_key(*parts: str) -> str:
    """
    make_key("gemini", "models") -> "gemini:models"
    Empty parts are dropped.
    """
    return ":".join([str(p).strip() for p in parts if str(p).strip()])


def get(key: str) -> Optional[Any]:
    """Cached value, or None when absent or expired (expired entries are dropped)."""
    expires_at, value = _cache.get(key, (0.0, None))
    if expires_at < time.time():
        _cache.pop(key, None)
        return None
    return value


def put(key: str, value: Any, ttl_seconds: int = 60) -> None:
    if ttl_seconds <= 0:
        return
    _cache[key] = (time.time() + ttl_seconds, value)


def get_or_load(key: str, loader: Callable[[], Any], ttl_seconds: int) -> Any:
    """Return the cached value, or call `loader` and cache what it returns."""
    cached = get(key)
    if cached is not None:
        return cached
    value = loader()
    put(key, value, ttl_seconds=ttl_seconds)
    return value


def clear() -> None:
    _cache.clear()
