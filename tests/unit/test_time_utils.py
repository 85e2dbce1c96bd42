from datetime import timedelta, timezone

from retryticker.utils.time import to_seconds, utc_dt
from retryticker.utils.types import Tick

def test_to_seconds():
    assert to_seconds(2) == 2.0
    assert to_seconds(timedelta(seconds=1, milliseconds=500)) == 1.5
    assert to_seconds(-0.1) == 0.0

def test_tick_helpers():
    a = Tick(mono=10.0, ts=1_700_000_000.0)
    b = Tick(mono=10.25, ts=1_700_000_000.25)
    assert b.since(a) == 0.25
    assert a < b
    assert a.utc().tzinfo == timezone.utc
    assert utc_dt(0).year == 1970
