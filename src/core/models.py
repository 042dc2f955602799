"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any browser-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

SIGNATURE_SEPARATOR = "::"
NOTIFY_MESSAGE_TYPE = "NOTIFY"


@dataclass(frozen=True)
class MessageEvent:
    """A chat message extracted from a rendered bubble."""

    sender: str
    body: str

    @property
    def signature(self) -> str:
        """Content key used for dedup independent of element identity."""

        return f"{self.sender}{SIGNATURE_SEPARATOR}{self.body}"


class Decision(str, Enum):
    """Outcome of handling one candidate bubble."""

    ALREADY_SEEN = "already_seen"
    NOT_PRIVATE = "not_private"
    UNCLASSIFIED = "unclassified"
    WARMING_UP = "warming_up"
    SELF = "self"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"
    NOTIFIED = "notified"
