"""
Usage Tracker

Records which question ids were served to an exam session so that later
batches for the same session can be audited. Stored in a Redis list
served:{session_id}; the TTL is refreshed on every write.

Fire-and-forget: failures are logged, never raised.
"""

import logging
import os
from typing import Iterable, List, Optional

import redis

log = logging.getLogger(__name__)

# ─── Config ────────────────────────────────────────────────────────────────────

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
USAGE_TTL_MINUTES = int(os.getenv("USAGE_TTL_MINUTES", "1440"))

_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    """Get or create Redis connection."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(REDIS_URL, decode_responses=True)
    return _redis_client


def _served_key(session_id: str) -> str:
    return f"served:{session_id}"


# ─── Operations ────────────────────────────────────────────────────────────────

def record_served_questions(
    session_id: str,
    question_ids: Iterable[str],
    ttl_minutes: int = USAGE_TTL_MINUTES,
) -> None:
    ids = [str(i) for i in question_ids]
    if not session_id or not ids:
        return
    key = _served_key(session_id)
    try:
        r = get_redis()
        r.rpush(key, *ids)
        r.expire(key, ttl_minutes * 60)
        log.info(f"[USAGE] Recorded {len(ids)} served questions for session {session_id}")
    except redis.RedisError as e:
        log.error(f"[USAGE] Failed to record served questions for session {session_id}: {e}")


def get_served_questions(session_id: str) -> List[str]:
    """All ids recorded for a session, oldest first. Empty when Redis is unreachable."""
    try:
        return get_redis().lrange(_served_key(session_id), 0, -1)
    except redis.RedisError as e:
        log.error(f"[USAGE] Failed to read served questions for session {session_id}: {e}")
        return []
