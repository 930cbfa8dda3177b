"""
Timestamps for records.

Every mutation stamps `lastUpdated`/`updatedAt`/`createdAt` through
`utcnow()`, which never returns the same instant twice in one process so
that two writes issued back to back still order strictly.
"""

import threading
import time
from datetime import datetime, timedelta, timezone

_lock = threading.Lock()
_last: datetime = datetime.min.replace(tzinfo=timezone.utc)
_last_ms: int = 0


def utcnow() -> datetime:
    """Current UTC time, strictly increasing across calls"""
    global _last
    with _lock:
        now = datetime.now(timezone.utc)
        if now <= _last:
            now = _last + timedelta(microseconds=1)
        _last = now
        return now


def isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def time_based_id() -> str:
    """Millisecond timestamp id for records created while offline"""
    global _last_ms
    with _lock:
        now_ms = int(time.time() * 1000)
        if now_ms <= _last_ms:
            now_ms = _last_ms + 1
        _last_ms = now_ms
        return str(now_ms)
