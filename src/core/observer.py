"""Drive the pipeline from the page's mutation feed."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from core.contract import BUBBLE_SELECTOR
from core.identity import IdentityResolver
from core.models import Decision
from core.processor import BubbleProcessor
from core.render import RenderNode

LOGGER = logging.getLogger(__name__)


def candidate_bubbles(added_nodes: Iterable[RenderNode]) -> List[RenderNode]:
    """Flatten a batch of added subtrees into bubbles, in feed order.

    An added node that is itself a bubble is taken as-is; otherwise its
    descendant bubbles are taken in document order. A bubble reached twice in
    one batch (e.g. a subtree reported along with its parent) is kept once.
    """

    bubbles: List[RenderNode] = []
    visited: set[int] = set()
    for node in added_nodes:
        if node.matches(BUBBLE_SELECTOR):
            found = [node]
        else:
            found = node.select_all(BUBBLE_SELECTOR)
        for bubble in found:
            if id(bubble) in visited:
                continue
            visited.add(id(bubble))
            bubbles.append(bubble)
    return bubbles


class StreamObserver:
    """Feeds each mutation batch through the processor.

    Nothing raised while handling a batch may escape ``on_batch``: the feed
    would stop delivering, silently disabling every later notification.
    """

    def __init__(
        self,
        processor: BubbleProcessor,
        identity_resolver: Optional[IdentityResolver] = None,
    ) -> None:
        self._processor = processor
        self._identity_resolver = identity_resolver

    def on_batch(self, added_nodes: Iterable[RenderNode]) -> List[Decision]:
        """Handle one batch of appended subtrees."""

        self._retry_identity_hook()

        decisions: List[Decision] = []
        try:
            bubbles = candidate_bubbles(added_nodes)
            # The tab cannot change mid-batch; look it up once, not per bubble.
            private_tab_on = self._processor.private_tab_state() if bubbles else None
        except Exception:
            LOGGER.exception("Error while scanning mutation batch")
            return decisions

        for bubble in bubbles:
            try:
                decisions.append(self._processor.handle(bubble, private_tab_on))
            except Exception:
                LOGGER.exception("Error while processing bubble %r", bubble)
        return decisions

    def _retry_identity_hook(self) -> None:
        resolver = self._identity_resolver
        if resolver is None or resolver.hooked:
            return
        try:
            resolver.try_hook(self._processor.context.surface)
        except Exception:
            LOGGER.exception("Error while hooking the nickname form")
