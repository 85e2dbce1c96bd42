from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import structlog

from retryticker.backoff import BackoffPolicy
from retryticker.config import TickerConfig
from retryticker.ticker import RetryTicker
from retryticker.utils.time import seconds_since
from retryticker.utils.types import Tick

log = structlog.get_logger("retry")

T = TypeVar("T")

Operation = Callable[[], Union[T, Awaitable[T]]]
Notify = Callable[[BaseException, Tick], Any]


class Permanent(Exception):
    """
    Raise Permanent(err) from an operation to stop retrying at once;
    retry() then raises `err` itself.
    """
    def __init__(self, err: BaseException):
        super().__init__(str(err))
        self.err = err


async def retry(
    operation: Operation,
    policy: BackoffPolicy,
    *,
    notify: Optional[Notify] = None,
    cfg: Optional[TickerConfig] = None,
):
    """
    Run `operation` once per tick until it succeeds; return its result.

    - operation may be a plain callable or a coroutine function
    - notify(err, tick) is called after each failed attempt
    - when the policy runs out, the last error is re-raised
    """
    last_err: Optional[BaseException] = None
    first: Optional[Tick] = None
    attempt = 0

    async with RetryTicker(policy, cfg) as ticker:
        async for tick in ticker:
            attempt += 1
            if first is None:
                first = tick
            try:
                result = operation()
                if inspect.isawaitable(result):
                    result = await result
                return result
            except Permanent as p:
                log.warning("retry_permanent_error", err=str(p.err), attempt=attempt)
                raise p.err from None
            except Exception as e:
                last_err = e
                log.warning("retry_attempt_failed", err=str(e), attempt=attempt)
                if notify is not None:
                    notify(e, tick)

    if first is None or last_err is None:
        # ticker task torn down (e.g. loop shutdown) before the first handoff
        log.error("retry_closed_before_attempt")
        raise RuntimeError("retry ticker closed before any attempt")

    elapsed = seconds_since(first.mono)
    log.error("retry_exhausted", attempts=attempt, elapsed_s=round(elapsed, 3))
    raise last_err
