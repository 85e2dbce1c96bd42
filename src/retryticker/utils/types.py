from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime

from retryticker.utils.time import loop_now_s, utc_dt, utc_now_s


@dataclass(slots=True, frozen=True, order=True)
class Tick:
    """
    One "attempt now" signal. Two readings of the same instant:
      mono: event-loop monotonic seconds (ordering, intervals)
      ts:   wall-clock epoch seconds (display, logs)
    """
    mono: float
    ts: float

    @classmethod
    def now(cls, loop: asyncio.AbstractEventLoop | None = None) -> "Tick":
        return cls(mono=loop_now_s(loop), ts=utc_now_s())

    def utc(self) -> datetime:
        return utc_dt(self.ts)

    def since(self, earlier: "Tick") -> float:
        """Seconds elapsed between `earlier` and this tick (loop clock)."""
        return self.mono - earlier.mono
