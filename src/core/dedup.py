"""Deduplication helpers (core domain)."""

from __future__ import annotations

from collections import OrderedDict
from typing import Iterable
import weakref

from core.config import DEFAULT_SIGNATURE_CAPACITY
from core.models import MessageEvent
from core.render import RenderNode


def make_signature(event: MessageEvent) -> str:
    """Return the content signature for an event."""

    return event.signature


class SeenElements:
    """Element-identity layer: remembers handled bubbles without owning them.

    Backed by a ``WeakSet`` so a bubble the page discards can still be
    reclaimed even though it was once marked seen.
    """

    def __init__(self) -> None:
        self._nodes: "weakref.WeakSet[RenderNode]" = weakref.WeakSet()

    def __contains__(self, node: object) -> bool:
        return node in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def add(self, node: RenderNode) -> None:
        self._nodes.add(node)

    def update(self, nodes: Iterable[RenderNode]) -> int:
        count = 0
        for node in nodes:
            self._nodes.add(node)
            count += 1
        return count


class SignatureLRU:
    """Bounded insertion-ordered set of recent signatures.

    Uses an ``OrderedDict`` as the ordered set; the oldest entry is evicted
    once the bound is exceeded.
    """

    def __init__(self, capacity: int = DEFAULT_SIGNATURE_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._items: "OrderedDict[str, None]" = OrderedDict()

    def __contains__(self, signature: object) -> bool:
        return signature in self._items

    def __len__(self) -> int:
        return len(self._items)

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, signature: str) -> None:
        # Re-adding keeps the original insertion slot, as a JS Set does.
        self._items[signature] = None
        while len(self._items) > self._capacity:
            self._items.popitem(last=False)
