"""State container for settings loading and dirty tracking."""

from __future__ import annotations

from dataclasses import dataclass

from core.config import WatcherSettings


@dataclass
class SettingsFormState:
    settings: WatcherSettings | None = None
    my_name: str | None = None
    dirty: bool = False
    error: str | None = None
