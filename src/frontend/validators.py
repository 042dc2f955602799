"""Validation helpers for settings editing."""

from __future__ import annotations

from dataclasses import dataclass

MAX_COOLDOWN_MS = 10 * 60 * 1000


@dataclass
class CooldownInfo:
    value: int | None
    error: str | None = None


def parse_cooldown(raw_value: str) -> CooldownInfo:
    raw_value = raw_value.strip()
    if not raw_value:
        return CooldownInfo(0)
    if not _is_int(raw_value):
        return CooldownInfo(None, "cooldown must be a whole number of milliseconds")
    value = int(raw_value)
    if value < 0:
        return CooldownInfo(None, "cooldown cannot be negative")
    if value > MAX_COOLDOWN_MS:
        return CooldownInfo(None, f"cooldown must be at most {MAX_COOLDOWN_MS} ms")
    return CooldownInfo(value)


def _is_int(value: str) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True
