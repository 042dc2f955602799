"""Bubble classification: turn a rendered bubble into a MessageEvent."""

from __future__ import annotations

from typing import Optional

from core.contract import (
    CONTENT_SELECTOR,
    PARAGRAPH_SELECTOR,
    PRIVATE_TAB_LABEL,
    PRIVATE_TAB_SELECTOR,
    SENDER_SELECTOR,
)
from core.identity import normalize_name
from core.models import MessageEvent
from core.ports import RenderSurfacePort
from core.render import RenderNode


def extract_message(bubble: RenderNode) -> Optional[MessageEvent]:
    """Return the bubble's (sender, body), or None when either is missing."""

    sender_el = bubble.select_one(SENDER_SELECTOR)
    sender = normalize_name(sender_el.text if sender_el else "")

    body = ""
    content_el = bubble.select_one(CONTENT_SELECTOR)
    if content_el is not None:
        paragraph = content_el.select_one(PARAGRAPH_SELECTOR)
        if paragraph is not None:
            body = paragraph.text
        # An empty paragraph falls back to the whole region.
        if not body:
            body = content_el.text

    if not sender or not body:
        return None
    return MessageEvent(sender=sender, body=body)


def is_private_tab_on(surface: RenderSurfacePort) -> bool:
    """True when the active chat tab is the private one."""

    label = surface.select_one(PRIVATE_TAB_SELECTOR)
    return (label.text if label else "") == PRIVATE_TAB_LABEL
