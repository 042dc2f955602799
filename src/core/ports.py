"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the render surface, persistence and
notification boundary so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Mapping, Optional, Protocol

from core.render import Listener, RenderNode, SelectorLike

ChangeCallback = Callable[[dict[str, Any]], None]


class RenderSurfacePort(Protocol):
    """Queryable mirror of the page plus listener attachment."""

    def select_one(self, selector: SelectorLike) -> Optional[RenderNode]:
        ...

    def select_all(self, selector: SelectorLike) -> List[RenderNode]:
        ...

    def listen(self, node: RenderNode, event_types: Iterable[str], callback: Listener) -> None:
        ...


class KeyValueStorePort(Protocol):
    """Small key-value namespace with change notifications."""

    def get(self, defaults: Mapping[str, Any]) -> dict[str, Any]:
        ...

    def set(self, items: Mapping[str, Any]) -> None:
        ...

    def subscribe(self, callback: ChangeCallback) -> None:
        ...


class NotificationSinkPort(Protocol):
    """Native alert surface behind the notification boundary."""

    def create(self, *, type: str, icon_url: Optional[str], title: str, message: str) -> Any:
        ...


# Fire-and-forget message send to the notification boundary.
MessageSender = Callable[[dict[str, Any]], None]
