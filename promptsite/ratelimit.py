from __future__ import annotations
import os
import threading
import time
from typing import Dict, Tuple

WINDOW_SECONDS: int = int(os.getenv("RATE_WINDOW_SECONDS", "60"))
MAX_REQUESTS: int = int(os.getenv("RATE_MAX_REQUESTS", "100"))
# Upper bound on tracked (bucket, client) pairs
MAX_KEYS: int = int(os.getenv("RATE_MAX_KEYS", "10000"))
SWEEP_INTERVAL_SECONDS: int = int(os.getenv("RATE_SWEEP_INTERVAL_SECONDS", "60"))

_lock = threading.Lock()
_store: Dict[Tuple[str, str], Dict[str, int]] = {}
_last_sweep: int = 0

def _now() -> int:
    return int(time.time())

def _bk(bucket: str, key: str) -> Tuple[str, str]:
    return (bucket or "default", key or "anon")

def _sweep(now: int) -> None:
    """Drop expired windows; if still full, evict the entries closest to reset."""
    global _last_sweep
    _last_sweep = now
    for k in [k for k, e in _store.items() if now >= e["reset_ts"]]:
        del _store[k]
    overflow = len(_store) - MAX_KEYS + 1
    if overflow > 0:
        oldest = sorted(_store.items(), key=lambda item: item[1]["reset_ts"])[:overflow]
        for k, _ in oldest:
            del _store[k]

def _ensure_entry(bucket: str, key: str, now: int) -> Dict[str, int]:
    k = _bk(bucket, key)
    entry = _store.get(k)
    if entry is None or now >= entry["reset_ts"]:
        if entry is None and (len(_store) >= MAX_KEYS or now - _last_sweep >= SWEEP_INTERVAL_SECONDS):
            _sweep(now)
        entry = {"count": 0, "reset_ts": now + WINDOW_SECONDS}
        _store[k] = entry
    return entry

def allow_request(bucket: str, key: str) -> Tuple[bool, int, int]:
    """
    Fixed-window check for one request.
    Returns (allowed: bool, remaining: int, reset_ts: int)
    """
    with _lock:
        entry = _ensure_entry(bucket, key, _now())
        if entry["count"] < MAX_REQUESTS:
            entry["count"] += 1
            remaining = max(0, MAX_REQUESTS - entry["count"])
            return True, remaining, entry["reset_ts"]
        # denied
        return False, 0, entry["reset_ts"]

def check_and_increment(bucket: str, key: str) -> Tuple[bool, int, int]:
    """Same return tuple as allow_request; mirrors RedisRateLimiter.check_and_increment."""
    return allow_request(bucket, key)

def tracked_keys() -> int:
    with _lock:
        return len(_store)

def _reset():
    """Used by tests to clear state."""
    global _last_sweep
    with _lock:
        _store.clear()
        _last_sweep = 0
