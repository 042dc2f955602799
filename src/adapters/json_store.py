"""JSON-file key-value store.

Implements the core KeyValueStorePort. The watcher and the settings panel run
as separate processes sharing one file, so besides notifying on its own
writes the store can poll the file and report keys changed by someone else.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

LOGGER = logging.getLogger(__name__)

_MISSING = object()


class JsonKeyValueStore:
    """Flat JSON object on disk with change subscriptions."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._subscribers: List[Callable[[Dict[str, Any]], None]] = []
        self._known = self._read()
        self._mtime = self._stat_mtime()

    @property
    def path(self) -> Path:
        return self._path

    def _stat_mtime(self) -> Optional[float]:
        try:
            return self._path.stat().st_mtime
        except FileNotFoundError:
            return None

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Ignoring unreadable store %s: %s", self._path, exc.msg)
            return {}
        if not isinstance(data, dict):
            LOGGER.warning("Ignoring store %s: root must be an object", self._path)
            return {}
        return data

    def _write(self, data: Mapping[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(dict(data), handle, indent=2, ensure_ascii=False)
            handle.write("\n")
        # Replace atomically so readers never see a half-written file.
        os.replace(tmp_path, self._path)

    def get(self, defaults: Mapping[str, Any]) -> Dict[str, Any]:
        """Return ``defaults`` overlaid with the stored values for those keys."""

        data = self._read()
        return {key: data.get(key, default) for key, default in defaults.items()}

    def get_all(self) -> Dict[str, Any]:
        return self._read()

    def set(self, items: Mapping[str, Any]) -> None:
        """Write ``items`` and notify subscribers of the keys that changed."""

        data = self._read()
        changes = {key: value for key, value in items.items() if data.get(key, _MISSING) != value}
        data.update(items)
        self._write(data)
        self._known = data
        self._mtime = self._stat_mtime()
        if changes:
            self._notify(changes)

    def subscribe(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        self._subscribers.append(callback)

    def poll(self) -> Dict[str, Any]:
        """Detect writes by other processes; returns the changed keys."""

        mtime = self._stat_mtime()
        if mtime == self._mtime:
            return {}
        self._mtime = mtime
        data = self._read()
        changes = {
            key: data.get(key)
            for key in set(data) | set(self._known)
            if data.get(key, _MISSING) != self._known.get(key, _MISSING)
        }
        self._known = data
        if changes:
            self._notify(changes)
        return changes

    async def watch(self, interval: float = 1.0) -> None:
        """Poll the file until cancelled."""

        while True:
            await asyncio.sleep(interval)
            try:
                self.poll()
            except OSError as exc:
                LOGGER.warning("Store poll failed: %s", exc)

    def _notify(self, changes: Dict[str, Any]) -> None:
        for callback in list(self._subscribers):
            try:
                callback(changes)
            except Exception:
                LOGGER.exception("Store subscriber failed")
