"""Self-identity: learning the local user's display name.

The name is typed into ZEP's profile-entry form, which can appear at any time
after page load. The resolver hooks the form once and persists every committed
nickname, so the processor can drop the user's own messages.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
import unicodedata
from typing import Optional

from core.config import MY_NAME_KEY
from core.contract import (
    BUTTON_SELECTOR,
    ENTER_BUTTON_LABEL,
    FALLBACK_INPUT_SELECTOR,
    HEADING_SELECTORS,
    NICKNAME_INPUT_SELECTOR,
    PROFILE_FORM_LABELS,
)
from core.ports import KeyValueStorePort, RenderSurfacePort
from core.render import RenderNode

LOGGER = logging.getLogger(__name__)

_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\u200d\u2060\ufeff]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(name: Optional[str]) -> str:
    """Canonicalize a display name for comparison.

    NFKC-normalizes, then drops zero-width characters and all whitespace.
    """

    text = unicodedata.normalize("NFKC", str(name or ""))
    text = _ZERO_WIDTH_RE.sub("", text)
    return _WHITESPACE_RE.sub("", text)


@dataclass
class IdentityState:
    """``Unknown`` while ``name`` is None, ``Learned(name)`` otherwise.

    The persisted name loads asynchronously and may lose the race against the
    first mutation batches. While unknown, ``matches`` is always False, so the
    pipeline over-notifies rather than drops messages.
    """

    name: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return self.name is not None

    def matches(self, sender: str) -> bool:
        return self.name is not None and sender == self.name

    def learn(self, name: Optional[str]) -> bool:
        """Adopt a new name; returns True when it changed."""

        normalized = normalize_name(name)
        if not normalized or normalized == self.name:
            return False
        self.name = normalized
        return True


class IdentityResolver:
    """Detect the nickname form, hook it once and persist committed names."""

    def __init__(self, identity: IdentityState, store: KeyValueStorePort) -> None:
        self._identity = identity
        self._store = store
        self._hooked = False

    @property
    def hooked(self) -> bool:
        return self._hooked

    def load(self) -> None:
        """Adopt the persisted name, if any."""

        stored = self._store.get({MY_NAME_KEY: None}).get(MY_NAME_KEY)
        if stored and self._identity.learn(stored):
            LOGGER.info("Loaded my name: %s", self._identity.name)

    def commit(self, value: Optional[str]) -> bool:
        """Persist a committed nickname when it differs from the learned one."""

        if not self._identity.learn(value):
            return False
        self._store.set({MY_NAME_KEY: self._identity.name})
        LOGGER.info("My name saved: %s", self._identity.name)
        return True

    def try_hook(self, surface: RenderSurfacePort) -> bool:
        """Attach listeners to the nickname form once it exists.

        Safe to call on every mutation batch; returns True once hooked.
        """

        if self._hooked:
            return True

        field = self._find_input(surface)
        if field is None:
            return False

        def on_field_event(event_type: str, detail: dict) -> None:
            if event_type == "keydown" and detail.get("key") != "Enter":
                return
            self.commit(detail.get("value", field.value))

        surface.listen(field, ("input", "change", "keydown"), on_field_event)

        button = next(
            (
                candidate
                for candidate in surface.select_all(BUTTON_SELECTOR)
                if candidate.text.lower() == ENTER_BUTTON_LABEL
            ),
            None,
        )
        if button is not None:
            surface.listen(button, ("click",), lambda _type, _detail: self.commit(field.value))

        self._hooked = True
        LOGGER.info("Nickname hook attached")
        return True

    @staticmethod
    def _find_input(surface: RenderSurfacePort) -> Optional[RenderNode]:
        field = surface.select_one(NICKNAME_INPUT_SELECTOR)
        if field is not None:
            return field
        # The structural input also matches other fields, so require a visible
        # profile heading before trusting it.
        for selector in HEADING_SELECTORS:
            for heading in surface.select_all(selector):
                if heading.text.lower() in PROFILE_FORM_LABELS:
                    return surface.select_one(FALLBACK_INPUT_SELECTOR)
        return None
