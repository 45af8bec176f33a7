from collections import deque
from time import monotonic

from fastapi import HTTPException, status

_MEMORY_BUCKET: dict[str, deque[float]] = {}


def _evict_idle(now: float, window_seconds: int) -> None:
    idle = [
        key
        for key, bucket in _MEMORY_BUCKET.items()
        if not bucket or (now - bucket[-1]) > window_seconds
    ]
    for key in idle:
        del _MEMORY_BUCKET[key]


def rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """Sliding-window limiter, per process."""
    if limit <= 0:
        return
    now = monotonic()
    _evict_idle(now, window_seconds)
    bucket = _MEMORY_BUCKET.setdefault(key, deque())
    while bucket and (now - bucket[0]) > window_seconds:
        bucket.popleft()
    if len(bucket) >= limit:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
        )
    bucket.append(now)


def reset_rate_limits() -> None:
    _MEMORY_BUCKET.clear()
