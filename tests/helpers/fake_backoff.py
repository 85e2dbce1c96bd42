import asyncio

from retryticker.backoff import STOP


def _loop_time():
    try:
        return asyncio.get_running_loop().time()
    except RuntimeError:
        return None


class ScriptedBackoff:
    """
    Backoff policy stub. Plays back `delays` in order, then answers `then`
    (STOP by default) forever. Records every call so tests can check
    ordering against the ticks they received.
    """
    def __init__(self, delays=(), then=STOP):
        self.delays = list(delays)
        self.then = then
        self.resets = 0
        self.calls = 0
        self.call_times = []
        self._i = 0

    def reset(self):
        self.resets += 1
        self._i = 0

    def next_delay(self):
        self.calls += 1
        self.call_times.append(_loop_time())
        if self._i < len(self.delays):
            d = self.delays[self._i]
            self._i += 1
            return d
        return self.then


class ConstantBackoff(ScriptedBackoff):
    """Same delay forever; never stops."""
    def __init__(self, delay):
        super().__init__(delays=(), then=delay)


class ExplodingBackoff(ScriptedBackoff):
    """Raises from next_delay() (or reset() with on_reset=True)."""
    def __init__(self, on_reset=False):
        super().__init__()
        self.on_reset = on_reset

    def reset(self):
        super().reset()
        if self.on_reset:
            raise RuntimeError("reset boom")

    def next_delay(self):
        self.calls += 1
        raise ValueError("next_delay boom")


class HookBackoff(ScriptedBackoff):
    """Calls `hook()` from inside next_delay() before answering."""
    def __init__(self, hook, delay=0.0):
        super().__init__(delays=(), then=delay)
        self.hook = hook

    def next_delay(self):
        self.hook()
        return super().next_delay()
