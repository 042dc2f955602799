"""Live settings snapshot, refreshed from the key-value store."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from core.config import SETTINGS_DEFAULTS, WatcherSettings
from core.ports import KeyValueStorePort

LOGGER = logging.getLogger(__name__)

# Loggers whose level follows the ``debug`` setting.
DEBUG_LOGGERS = ("core", "adapters")


def apply_debug_logging(enabled: bool, logger_names: Iterable[str] = DEBUG_LOGGERS) -> None:
    level = logging.DEBUG if enabled else logging.NOTSET
    for name in logger_names:
        logging.getLogger(name).setLevel(level)


class SettingsState:
    """Holds the active ``WatcherSettings``.

    Readers always see a complete snapshot: a change notification re-reads
    the store and swaps the whole object.
    """

    def __init__(self, store: KeyValueStorePort) -> None:
        self._store = store
        self._current = WatcherSettings()

    @property
    def current(self) -> WatcherSettings:
        return self._current

    def load(self) -> WatcherSettings:
        self._replace(WatcherSettings.from_mapping(self._store.get(SETTINGS_DEFAULTS)))
        return self._current

    def subscribe(self) -> None:
        """Start following store changes."""

        self._store.subscribe(self._on_store_changed)

    def _on_store_changed(self, changes: dict[str, Any]) -> None:
        if not any(key in SETTINGS_DEFAULTS for key in changes):
            return
        self.load()
        LOGGER.info(
            "Settings updated: only_when_private_on=%s cooldown_ms=%s debug=%s",
            self._current.only_when_private_on,
            self._current.cooldown_ms,
            self._current.debug,
        )

    def _replace(self, snapshot: WatcherSettings) -> None:
        previous = self._current
        self._current = snapshot
        if previous.debug != snapshot.debug:
            apply_debug_logging(snapshot.debug)
