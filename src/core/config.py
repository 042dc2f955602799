"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

# Store keys are shared with the settings panel, so they keep their camelCase.
ONLY_WHEN_PRIVATE_ON_KEY = "onlyWhenPrivateOn"
COOLDOWN_MS_KEY = "cooldownMs"
DEBUG_KEY = "debug"
MY_NAME_KEY = "myNameAuto"

DEFAULT_COOLDOWN_MS = 1500
DEFAULT_WARMUP_MS = 2500
DEFAULT_SIGNATURE_CAPACITY = 200

SETTINGS_DEFAULTS: dict[str, Any] = {
    ONLY_WHEN_PRIVATE_ON_KEY: True,
    COOLDOWN_MS_KEY: DEFAULT_COOLDOWN_MS,
    DEBUG_KEY: False,
}


def _coerce_cooldown(value: Any) -> int:
    if value is None:
        return 0
    try:
        cooldown = int(value)
    except (TypeError, ValueError):
        return DEFAULT_COOLDOWN_MS
    return max(cooldown, 0)


@dataclass(frozen=True)
class WatcherSettings:
    """User-tunable settings snapshot; replaced wholesale on change."""

    only_when_private_on: bool = True
    cooldown_ms: int = DEFAULT_COOLDOWN_MS
    debug: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "WatcherSettings":
        """Build a snapshot from store values, falling back to defaults."""

        merged = {**SETTINGS_DEFAULTS, **dict(data)}
        return cls(
            only_when_private_on=bool(merged[ONLY_WHEN_PRIVATE_ON_KEY]),
            cooldown_ms=_coerce_cooldown(merged[COOLDOWN_MS_KEY]),
            debug=bool(merged[DEBUG_KEY]),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            ONLY_WHEN_PRIVATE_ON_KEY: self.only_when_private_on,
            COOLDOWN_MS_KEY: self.cooldown_ms,
            DEBUG_KEY: self.debug,
        }


@dataclass(frozen=True)
class PipelineConfig:
    """Static pipeline constants."""

    warmup_ms: int = DEFAULT_WARMUP_MS
    signature_capacity: int = DEFAULT_SIGNATURE_CAPACITY
