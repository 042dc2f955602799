"""Render-tree model used by the core pipeline.

The watcher never touches the browser DOM directly. Adapters mirror the page
into ``RenderNode`` objects and the core queries them with a small CSS subset:
compound selectors (``tag``, ``[attr]``, ``[attr="value"]``) joined by the
descendant combinator. That covers every selector in the render-tree contract.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

_COMPOUND_RE = re.compile(r"^(?P<tag>[a-zA-Z][\w-]*|\*)?(?P<attrs>(?:\[[^\]]+\])*)$")
_ATTR_RE = re.compile(r"\[\s*([\w:-]+)\s*(?:=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\]\s]+)))?\s*\]")
_LINE_BREAK_RE = re.compile(r"[ \t]*\n[ \t\n]*")

# Tags rendered on their own lines, so their text is separated like innerText.
BLOCK_TAGS = frozenset(
    ("p", "div", "li", "ul", "ol", "h1", "h2", "h3", "h4", "h5", "h6", "pre", "blockquote", "tr")
)

Listener = Callable[[str, dict], None]


@dataclass(frozen=True)
class Compound:
    """One compound selector: optional tag plus attribute conditions."""

    tag: Optional[str]
    attrs: Tuple[Tuple[str, Optional[str]], ...]

    def matches(self, node: "RenderNode") -> bool:
        if self.tag is not None and node.tag != self.tag:
            return False
        for name, expected in self.attrs:
            actual = node.attrs.get(name)
            if actual is None:
                return False
            if expected is not None and actual != expected:
                return False
        return True


@dataclass(frozen=True)
class Selector:
    """A descendant-combinator chain of compound selectors."""

    source: str
    parts: Tuple[Compound, ...]

    def matches(self, node: "RenderNode") -> bool:
        if not self.parts[-1].matches(node):
            return False
        # Right-to-left: each earlier part must match some ancestor, in order.
        ancestor = node.parent
        for part in reversed(self.parts[:-1]):
            while ancestor is not None and not part.matches(ancestor):
                ancestor = ancestor.parent
            if ancestor is None:
                return False
            ancestor = ancestor.parent
        return True


def _split_compounds(source: str) -> List[str]:
    parts: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    depth = 0
    for ch in source.strip():
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch.isspace() and depth == 0:
            if current:
                parts.append("".join(current))
                current = []
            continue
        current.append(ch)
    if current:
        parts.append("".join(current))
    return parts


def parse_selector(source: str) -> Selector:
    """Compile a selector string into a ``Selector``."""

    compounds: List[Compound] = []
    for raw in _split_compounds(source):
        match = _COMPOUND_RE.match(raw)
        if not match:
            raise ValueError(f"Unsupported selector: {source!r}")
        tag = match.group("tag")
        attrs = []
        for attr in _ATTR_RE.finditer(match.group("attrs") or ""):
            value = next((v for v in attr.group(2, 3, 4) if v is not None), None)
            attrs.append((attr.group(1), value))
        compounds.append(
            Compound(tag=None if tag in (None, "*") else tag.lower(), attrs=tuple(attrs))
        )
    if not compounds:
        raise ValueError("Empty selector")
    return Selector(source=source, parts=tuple(compounds))


SelectorLike = Union[str, Selector]


def _as_selector(selector: SelectorLike) -> Selector:
    if isinstance(selector, Selector):
        return selector
    return parse_selector(selector)


class RenderNode:
    """A mirrored element: tag, attributes, children and listeners.

    Nodes compare and hash by identity and support weak references, so dedup
    structures can track them without keeping them alive.
    """

    def __init__(
        self,
        tag: str,
        attrs: Optional[Dict[str, str]] = None,
        children: Optional[List[Union["RenderNode", str]]] = None,
        node_id: Optional[int] = None,
    ) -> None:
        self.tag = tag.lower()
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.node_id = node_id
        self.parent: Optional[RenderNode] = None
        self.children: List[Union[RenderNode, str]] = []
        self._listeners: Dict[str, List[Listener]] = {}
        for child in children or []:
            self.append(child)

    def __repr__(self) -> str:
        return f"<RenderNode {self.tag} id={self.node_id}>"

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(name, default)

    def append(self, child: Union["RenderNode", str]) -> None:
        self.insert(len(self.children), child)

    def insert(self, index: int, child: Union["RenderNode", str]) -> None:
        if isinstance(child, RenderNode):
            child.parent = self
        self.children.insert(index, child)

    def remove(self, child: "RenderNode") -> None:
        self.children = [item for item in self.children if item is not child]
        child.parent = None

    @property
    def element_children(self) -> List["RenderNode"]:
        return [child for child in self.children if isinstance(child, RenderNode)]

    def iter_descendants(self) -> Iterator["RenderNode"]:
        """Yield descendant elements in document (pre-)order, excluding self."""

        stack = list(reversed(self.element_children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.element_children))

    @property
    def text(self) -> str:
        """Visible text of the subtree, trimmed.

        ``br`` and block elements break lines; consecutive breaks collapse.
        """

        return _LINE_BREAK_RE.sub("\n", self._raw_text()).strip()

    def _raw_text(self) -> str:
        if self.tag == "br":
            return "\n"
        pieces: List[str] = []
        for child in self.children:
            if isinstance(child, RenderNode):
                pieces.append(child._raw_text())
            else:
                pieces.append(child)
        text = "".join(pieces)
        if self.tag in BLOCK_TAGS:
            return f"\n{text}\n"
        return text

    @property
    def value(self) -> str:
        """Current value of an input-like element."""

        return self.attrs.get("value", "")

    def matches(self, selector: SelectorLike) -> bool:
        return _as_selector(selector).matches(self)

    def select_all(self, selector: SelectorLike) -> List["RenderNode"]:
        compiled = _as_selector(selector)
        return [node for node in self.iter_descendants() if compiled.matches(node)]

    def select_one(self, selector: SelectorLike) -> Optional["RenderNode"]:
        compiled = _as_selector(selector)
        return next((node for node in self.iter_descendants() if compiled.matches(node)), None)

    def add_listener(self, event_type: str, callback: Listener) -> None:
        self._listeners.setdefault(event_type, []).append(callback)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    def dispatch(self, event_type: str, detail: Optional[dict] = None) -> None:
        """Deliver a page event to the listeners registered on this node."""

        detail = detail or {}
        if "value" in detail and detail["value"] is not None:
            self.attrs["value"] = str(detail["value"])
        for callback in list(self._listeners.get(event_type, [])):
            callback(event_type, detail)
