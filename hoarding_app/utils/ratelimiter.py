"""In-memory rate limiter utilities.

Implements a lightweight fixed-window mechanism for a single process. Running
several API workers multiplies the effective limit by the worker count.

Usage pattern:
    from hoarding_app.utils.ratelimiter import rate_limiter
    allowed, state = await rate_limiter.check_and_increment(
        key="user:42",            # or "addr:203.0.113.7" for anonymous callers
        category="booking",       # booking | report_intake | auth | default
        limit=30,
        window_seconds=60,
    )

The limiter stores per-key windows: { key: { category: Bucket(window_start, count) } }
Concurrency: an asyncio.Lock per bucket; callers are the HTTP middleware on the event loop.

Headers contract (mirrors common conventions):
    X-RateLimit-Limit: int total allowed in the window
    X-RateLimit-Remaining: int remaining
    X-RateLimit-Reset: epoch seconds when current window resets

Return semantics:
    check_and_increment -> (allowed: bool, meta: dict)
        meta = {
            'limit': int,
            'remaining': int,
            'reset_epoch': int,
            'window_start': int,
            'count': int,
            'category': str
        }

Notes:
 - Fixed window keeps tests deterministic.
 - Buckets for keys idle longer than their window are pruned by `prune`.
"""
from __future__ import annotations

import time
import asyncio
from dataclasses import dataclass, field
from typing import Dict, Tuple

@dataclass
class Bucket:
    window_start: int
    window_seconds: int
    count: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

class InMemoryRateLimiter:
    def __init__(self, max_keys: int = 10_000):
        # key -> category -> Bucket
        self._buckets: Dict[str, Dict[str, Bucket]] = {}
        self._global_lock = asyncio.Lock()
        self._max_keys = max_keys

    def _now(self) -> int:
        return int(time.time())

    async def check_and_increment(self, key: str, category: str, limit: int, window_seconds: int) -> Tuple[bool, dict]:
        now = self._now()
        window_start = now - (now % window_seconds)  # fixed window boundary

        # Fast path if buckets exist; else create under global lock
        buckets = self._buckets.get(key)
        if buckets is None:
            async with self._global_lock:
                if len(self._buckets) >= self._max_keys:
                    self._prune_locked(now)
                buckets = self._buckets.setdefault(key, {})
        bucket = buckets.get(category)
        if bucket is None:
            async with self._global_lock:
                # Re-check inside lock
                bucket = buckets.get(category)
                if bucket is None:
                    bucket = Bucket(window_start=window_start, window_seconds=window_seconds)
                    buckets[category] = bucket

        async with bucket.lock:
            # Reset window if expired
            if bucket.window_start != window_start:
                bucket.window_start = window_start
                bucket.window_seconds = window_seconds
                bucket.count = 0
            bucket.count += 1
            allowed = bucket.count <= limit
            remaining = max(0, limit - bucket.count)
            reset_epoch = bucket.window_start + window_seconds
            meta = {
                "limit": limit,
                "remaining": remaining if allowed else 0,
                "reset_epoch": reset_epoch,
                "window_start": bucket.window_start,
                "count": bucket.count,
                "category": category,
            }
            return allowed, meta

    def _prune_locked(self, now: int) -> int:
        dropped = 0
        for key in list(self._buckets):
            buckets = self._buckets[key]
            for category in [c for c, b in buckets.items() if b.window_start + b.window_seconds <= now]:
                del buckets[category]
            if not buckets:
                del self._buckets[key]
                dropped += 1
        return dropped

    async def prune(self) -> int:
        """Drop keys whose every window has ended. Returns how many keys were dropped."""
        async with self._global_lock:
            return self._prune_locked(self._now())

    def reset(self) -> None:
        self._buckets.clear()

# Singleton instance used application-wide
rate_limiter = InMemoryRateLimiter()

__all__ = ["rate_limiter", "InMemoryRateLimiter"]
