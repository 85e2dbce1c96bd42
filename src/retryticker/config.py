from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


@dataclass(slots=True)
class TickerConfig:
    """
    name:      asyncio task name; also bound on every log event
    log_ticks: emit a debug `ticker_tick` event per delivered tick
    """
    name: str = "retry-ticker"
    log_ticks: bool = False


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


def config_from_env(prefix: str = "RETRY_TICKER_", *, dotenv: bool = True) -> TickerConfig:
    """
    Build a TickerConfig from the environment (after loading .env if present):
      RETRY_TICKER_NAME, RETRY_TICKER_LOG_TICKS
    Raises ValueError on malformed values.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    default = TickerConfig()
    name = os.getenv(f"{prefix}NAME", "").strip() or default.name
    return TickerConfig(
        name=name,
        log_ticks=_env_bool(f"{prefix}LOG_TICKS", default.log_ticks),
    )
