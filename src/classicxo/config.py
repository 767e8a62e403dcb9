"""Runtime settings read from ``CLASSICXO_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return value


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    ai_move_delay: float = 0.5
    reset_delay: float = 2.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        port_raw = env.get("CLASSICXO_PORT", str(cls.port))
        try:
            port = int(port_raw)
        except ValueError as exc:
            raise ValueError(
                f"CLASSICXO_PORT must be an integer, got {port_raw!r}"
            ) from exc
        return cls(
            host=env.get("CLASSICXO_HOST", cls.host),
            port=port,
            ai_move_delay=_number(env, "CLASSICXO_AI_DELAY", cls.ai_move_delay),
            reset_delay=_number(env, "CLASSICXO_RESET_DELAY", cls.reset_delay),
            log_level=env.get("CLASSICXO_LOG_LEVEL", cls.log_level).upper(),
        )
