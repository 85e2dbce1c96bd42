from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from retryticker.backoff import BackoffPolicy, delay_seconds
from retryticker.config import TickerConfig
from retryticker.utils.types import Tick

# resolves a parked consumer when the stream closes
_CLOSED = object()


class RetryTicker:
    """
    Delivers ticks at times dictated by a backoff policy.

    Lifecycle:
      - Build → first tick is ready at once (the policy is not consulted for it)
      - Each tick is handed to the consumer one at a time; only after it has
        been taken is policy.next_delay() asked for the next wait
      - Ends on cancel() or when the policy answers STOP; either way the
        stream simply closes

    Notes:
      - Single consumer. The handoff has no buffer: if nobody reads, the
        background task waits at the handoff (never drops, never queues).
      - cancel() is idempotent and never blocks. Always cancel on every exit
        path (use `async with`); a ticker that is neither cancelled nor
        exhausted keeps its task parked until the loop goes away.
      - A tick already handed off when cancel() runs is still returned to
        the consumer, as is one whose reader was cancelled after the
        handoff (kept for the next read). A consumer still waiting gets
        end-of-stream.

    Usage:
        async with RetryTicker(policy) as ticker:
            async for tick in ticker:
                try:
                    await operation()
                except Exception as e:
                    log.warning("will_retry", err=str(e))
                    continue
                break
    """

    def __init__(self, policy: BackoffPolicy, cfg: Optional[TickerConfig] = None):
        self.cfg = cfg or TickerConfig()
        # raises RuntimeError outside a running loop
        self._loop = asyncio.get_running_loop()
        self._policy = policy
        self._log = structlog.get_logger("retry_ticker").bind(ticker=self.cfg.name)

        self._stop = asyncio.Event()   # cancel requested
        self._wake = asyncio.Event()   # consumer parked, or cancel requested
        self._getter: Optional[asyncio.Future] = None
        self._pending: Optional[Tick] = None  # handed off, but the reader was cancelled
        self._reading = False                 # a consumer is inside next()
        self._stopped = False

        self.ticks_sent: int = 0

        self._policy.reset()
        self._task = self._loop.create_task(self._run(), name=self.cfg.name)

    # ---------------------------- public API ---------------------------- #

    @property
    def stopped(self) -> bool:
        """True once cancelled or exhausted; no tick will be handed off after this."""
        return self._stopped

    def done(self) -> bool:
        """True once the background task has finished."""
        return self._task.done()

    def cancel(self) -> None:
        """Stop ticking and close the stream. Safe to call any number of times."""
        if self._stopped:
            return
        self._stopped = True
        self._stop.set()
        self._wake.set()

        getter, self._getter = self._getter, None
        if getter is not None and not getter.done():
            getter.set_result(_CLOSED)

    def cancel_threadsafe(self) -> None:
        """cancel() from a thread other than the one running the ticker's loop."""
        if self._stopped:
            return
        try:
            self._loop.call_soon_threadsafe(self.cancel)
        except RuntimeError:
            # loop already closed: the task cannot run again
            pass

    async def next(self) -> Optional[Tick]:
        """Wait for the next tick; None once the stream is closed."""
        if self._reading:
            raise RuntimeError("RetryTicker supports a single consumer")
        if self._pending is not None:
            tick, self._pending = self._pending, None
            return tick
        if self._stopped:
            return None

        fut = self._loop.create_future()
        self._getter = fut
        self._reading = True
        self._wake.set()
        try:
            item = await fut
        except asyncio.CancelledError:
            # already handed off: keep it for the next read
            if fut.done() and not fut.cancelled() and isinstance(fut.result(), Tick):
                self._pending = fut.result()
            raise
        finally:
            self._reading = False
            if self._getter is fut:
                self._getter = None
        return None if item is _CLOSED else item

    async def wait_closed(self) -> None:
        """Wait for the background task to finish (does not cancel it)."""
        await asyncio.wait({self._task})

    async def aclose(self) -> None:
        self.cancel()
        await self.wait_closed()

    def __aiter__(self) -> "RetryTicker":
        return self

    async def __anext__(self) -> Tick:
        tick = await self.next()
        if tick is None:
            raise StopAsyncIteration
        return tick

    async def __aenter__(self) -> "RetryTicker":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --------------------------- core internals ------------------------- #

    async def _run(self) -> None:
        self._log.debug("ticker_started")
        # guaranteed first tick, before next_delay() is ever called
        tick: Optional[Tick] = Tick.now(self._loop)
        try:
            while True:
                if not await self._send(tick):
                    self._log.debug("ticker_cancelled", ticks=self.ticks_sent)
                    return

                try:
                    delay = delay_seconds(self._policy.next_delay())
                except Exception as e:
                    self._log.error("policy_next_delay_failed", err=str(e), ticks=self.ticks_sent)
                    return
                if delay is None:
                    self._log.info("ticker_exhausted", ticks=self.ticks_sent)
                    return

                tick = await self._after(delay)
                if tick is None:
                    self._log.debug("ticker_cancelled", ticks=self.ticks_sent)
                    return
        finally:
            self.cancel()

    async def _send(self, tick: Tick) -> bool:
        """
        Hand `tick` to the parked consumer, waiting for one to arrive.
        Returns False if cancelled first.
        """
        while not self._stopped:
            getter = self._getter
            if getter is not None and not getter.done():
                self._getter = None
                getter.set_result(tick)
                self.ticks_sent += 1
                if self.cfg.log_ticks:
                    self._log.debug("ticker_tick", n=self.ticks_sent, ts=round(tick.ts, 6))
                return True
            self._wake.clear()
            await self._wake.wait()
        return False

    async def _after(self, delay: float) -> Optional[Tick]:
        """Wait `delay` seconds unless cancelled first. Returns the new tick, or None."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return Tick.now(self._loop)
        return None
