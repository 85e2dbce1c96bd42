from __future__ import annotations

import asyncio
import time
from datetime import datetime, timedelta, timezone

# --- clock readings used for tick timestamps ---

def utc_now_s() -> float:
    """Unix epoch seconds (float)."""
    return time.time()

def loop_now_s(loop: asyncio.AbstractEventLoop | None = None) -> float:
    """Monotonic seconds on the event loop clock (the clock timers run on)."""
    if loop is None:
        loop = asyncio.get_running_loop()
    return loop.time()

def utc_dt(ts: float | int) -> datetime:
    """Epoch seconds -> timezone-aware UTC datetime."""
    return datetime.fromtimestamp(float(ts), tz=timezone.utc)

# --- duration helpers ---

def to_seconds(d: float | int | timedelta) -> float:
    """Duration as float seconds, clamped at 0."""
    if isinstance(d, timedelta):
        d = d.total_seconds()
    return max(0.0, float(d))

def seconds_since(mono_past: float, loop: asyncio.AbstractEventLoop | None = None) -> float:
    """Non-negative loop-clock time since a past reading (clamped at 0)."""
    return max(0.0, loop_now_s(loop) - mono_past)
