from __future__ import annotations

import enum
from datetime import timedelta
from typing import Optional, Protocol, Union, runtime_checkable

from retryticker.utils.time import to_seconds


class Stop(enum.Enum):
    """Sentinel type for "no further ticks". Not an error."""
    STOP = "stop"

    def __repr__(self) -> str:
        return "STOP"


STOP = Stop.STOP

# What a policy may hand back from next_delay(). None is read as STOP.
Delay = Union[float, int, timedelta, Stop, None]


@runtime_checkable
class BackoffPolicy(Protocol):
    """
    Capability the ticker consumes. Any object with these two methods works;
    computing the actual durations (exponential, jitter, caps, ...) is the
    policy's business, not the ticker's.

    - reset(): reinitialize counters. Called once, when a ticker is built.
    - next_delay(): seconds (or timedelta) until the next tick, or STOP.
      Must not block.
    """

    def reset(self) -> None: ...

    def next_delay(self) -> Delay: ...


def is_stop(d: Delay) -> bool:
    return d is None or d is STOP


def delay_seconds(d: Delay) -> Optional[float]:
    """
    Normalize a policy answer: None for STOP, else non-negative float seconds.
    """
    if is_stop(d):
        return None
    return to_seconds(d)
