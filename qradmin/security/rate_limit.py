"""Ограничение частоты запросов по фиксированному окну.

Счётчики лежат в Redis, если задан ``REDIS_URL``, иначе в памяти
процесса (у каждого воркера gunicorn свои). В памяти на пару
``bucket:ident`` хранится одна запись, которая обнуляется при смене
окна; просроченные записи вычищаются, когда их становится много.

    ok, info = check_rate_limit("api", client_ip(), limit=100, window_seconds=900)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import redis
from flask import current_app

logger = logging.getLogger(__name__)

# "<bucket>:<ident>" -> (hits, window_end)
_counters: Dict[str, Tuple[int, int]] = {}
_counters_lock = threading.Lock()
_PRUNE_AT = 1000


@dataclass(frozen=True)
class LimitInfo:
    limit: int
    remaining: int
    reset_in: int

    def to_dict(self) -> Dict[str, int]:
        return {'limit': self.limit, 'remaining': self.remaining, 'resetIn': self.reset_in}

    def http_headers(self) -> Dict[str, str]:
        values = (('Limit', self.limit), ('Remaining', self.remaining), ('Reset', self.reset_in))
        return {f'X-RateLimit-{name}': str(value) for name, value in values}


def reset_memory_limits() -> None:
    with _counters_lock:
        _counters.clear()


def _prune_expired(now: int) -> None:
    for key in [k for k, (_, window_end) in _counters.items() if window_end <= now]:
        del _counters[key]


def _memory_hit(bucket: str, ident: str, window_seconds: int, now: int) -> Tuple[int, int]:
    key = f"{bucket}:{ident}"
    with _counters_lock:
        if len(_counters) >= _PRUNE_AT:
            _prune_expired(now)
        hits, window_end = _counters.get(key, (0, 0))
        if window_end <= now:
            hits, window_end = 0, now + window_seconds
        hits += 1
        _counters[key] = (hits, window_end)
    return hits, window_end


def _redis_hit(url: str, bucket: str, ident: str, window_seconds: int, now: int) -> Tuple[int, int]:
    window_end = now - now % window_seconds + window_seconds
    key = f"rl:{bucket}:{ident}:{window_end}"
    client = redis.Redis.from_url(url, decode_responses=True)
    hits = int(client.incr(key))
    if hits == 1:
        client.expireat(key, window_end + 5)
    return hits, window_end


def check_rate_limit(
    bucket: str,
    ident: str,
    limit: int,
    window_seconds: int,
    now: Optional[float] = None,
) -> Tuple[bool, LimitInfo]:
    """Засчитать запрос ``ident`` в корзине ``bucket``.

    Возвращает ``(разрешён, LimitInfo)``. Недоступный Redis не блокирует
    запросы: счёт продолжается в памяти.
    """
    now = int(time.time() if now is None else now)
    url = (current_app.config.get("REDIS_URL") or "").strip()

    counted: Optional[Tuple[int, int]] = None
    if url:
        try:
            counted = _redis_hit(url, bucket, ident, window_seconds, now)
        except redis.RedisError:
            logger.warning("rate limit: redis unavailable, counting in memory", exc_info=True)
    if counted is None:
        counted = _memory_hit(bucket, ident, window_seconds, now)

    hits, window_end = counted
    info = LimitInfo(limit=limit, remaining=max(0, limit - hits), reset_in=max(0, window_end - now))
    return hits <= limit, info
