"""In-process mirror of the watched page.

The injected page script reports JSON records; this adapter applies them to a
``RenderNode`` tree and implements the core ``RenderSurfacePort`` on top of it.

Record kinds:
- ``snapshot``: full serialization of ``document.body``; resets the mirror.
- ``children``: the current child list of a known element. Known children are
  sent as ``{"ref": id}``, new elements as full trees, text as ``{"text": ...}``.
- ``attr``: one attribute change on a known element (``value`` None removes).
- ``event``: a DOM event from a listener attached through ``listen``.

The id index is weak: the tree is the only owner of a node, so removed
elements can be reclaimed. An element the page detaches and later re-attaches
is sent in full again; while the old node is still alive it is reused, so the
same element keeps the same identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import weakref
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from core.render import Listener, RenderNode, SelectorLike

LOGGER = logging.getLogger(__name__)

ListenRequest = Callable[[int, Tuple[str, ...]], None]


@dataclass
class MirrorBatch:
    """Result of applying one feed batch."""

    snapshot: bool = False
    added: List[RenderNode] = field(default_factory=list)
    events: int = 0


class DomMirror:
    """RenderSurfacePort backed by page records."""

    def __init__(self, on_listen: Optional[ListenRequest] = None) -> None:
        self._root: Optional[RenderNode] = None
        self._nodes: "weakref.WeakValueDictionary[int, RenderNode]" = weakref.WeakValueDictionary()
        self._on_listen = on_listen

    @property
    def root(self) -> Optional[RenderNode]:
        return self._root

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, node_id: int) -> Optional[RenderNode]:
        return self._nodes.get(node_id)

    def select_one(self, selector: SelectorLike) -> Optional[RenderNode]:
        if self._root is None:
            return None
        if self._root.matches(selector):
            return self._root
        return self._root.select_one(selector)

    def select_all(self, selector: SelectorLike) -> List[RenderNode]:
        if self._root is None:
            return []
        found = self._root.select_all(selector)
        if self._root.matches(selector):
            found.insert(0, self._root)
        return found

    def listen(self, node: RenderNode, event_types: Iterable[str], callback: Listener) -> None:
        types = tuple(event_types)
        for event_type in types:
            node.add_listener(event_type, callback)
        if self._on_listen is not None and node.node_id is not None:
            self._on_listen(node.node_id, types)

    def apply(self, records: Iterable[Dict[str, Any]]) -> MirrorBatch:
        """Apply a batch of records, returning newly added element subtrees."""

        batch = MirrorBatch()
        for record in records:
            kind = record.get("kind")
            if kind == "snapshot":
                self._reset(record["node"])
                batch.snapshot = True
                batch.added.clear()
            elif kind == "children":
                batch.added.extend(self._apply_children(record))
            elif kind == "attr":
                self._apply_attr(record)
            elif kind == "event":
                if self._apply_event(record):
                    batch.events += 1
            else:
                LOGGER.debug("Ignoring unknown record kind: %s", kind)
        return batch

    def _reset(self, tree: Dict[str, Any]) -> None:
        self._nodes = weakref.WeakValueDictionary()
        added: List[RenderNode] = []
        root = self._build(tree, added)
        if not isinstance(root, RenderNode):
            raise ValueError("snapshot root must be an element")
        self._root = root

    def _build(self, tree: Dict[str, Any], added: List[RenderNode]) -> Any:
        """Build a node (or text) from a serialized tree.

        ``added`` collects the roots of subtrees the page inserted.
        """

        if "text" in tree:
            return str(tree["text"])
        if "ref" in tree:
            node = self._nodes.get(tree["ref"])
            if node is None:
                LOGGER.debug("Dropping unknown node ref %s", tree["ref"])
                return None
            self._detach(node)
            return node

        node_id = tree.get("id")
        node = self._nodes.get(node_id) if node_id is not None else None
        if node is None:
            node = RenderNode(tree.get("tag", "div"), node_id=node_id)
            if node_id is not None:
                self._nodes[node_id] = node
        else:
            # A re-attached element the mirror still holds: same node, fresh content.
            self._detach(node)
            for old in node.element_children:
                if old.parent is node:
                    old.parent = None
            node.children = []
        node.attrs = dict(tree.get("attrs") or {})
        added.append(node)
        for child in tree.get("children") or []:
            # Descendants of an inserted subtree are reported through their root only.
            built = self._build(child, [])
            if built is not None:
                node.append(built)
        return node

    @staticmethod
    def _detach(node: RenderNode) -> None:
        if node.parent is not None:
            node.parent.remove(node)

    def _apply_children(self, record: Dict[str, Any]) -> List[RenderNode]:
        parent = self._nodes.get(record.get("parent"))
        if parent is None:
            return []

        previous = parent.element_children
        added: List[RenderNode] = []
        children = [self._build(child, added) for child in record.get("children") or []]
        for old in previous:
            # Children moved into another subtree by this record keep their new parent.
            if old.parent is parent:
                old.parent = None
        parent.children = []
        for child in children:
            if child is not None:
                parent.append(child)
        return added

    def _apply_attr(self, record: Dict[str, Any]) -> None:
        node = self._nodes.get(record.get("id"))
        if node is None:
            return
        name = record.get("name")
        value = record.get("value")
        if value is None:
            node.attrs.pop(name, None)
        else:
            node.attrs[name] = str(value)

    def _apply_event(self, record: Dict[str, Any]) -> bool:
        node = self._nodes.get(record.get("id"))
        if node is None:
            return False
        node.dispatch(
            str(record.get("type")),
            {"value": record.get("value"), "key": record.get("key")},
        )
        return True
