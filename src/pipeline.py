"""Page-level wiring of the detection pipeline.

Each page load is one pipeline lifetime:
1) A snapshot record resets the mirror
2) A fresh PipelineContext is built, existing bubbles are primed and the
   warm-up clock starts
3) Every later batch is applied to the mirror and its added subtrees go to
   the StreamObserver

Identity and settings outlive page loads; seen elements, recent signatures,
the cooldown timestamp and the warm-up gate do not.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from adapters.dom_mirror import DomMirror
from core.config import MY_NAME_KEY, PipelineConfig
from core.dispatcher import NotificationDispatcher
from core.gates import Clock, monotonic_ms
from core.identity import IdentityResolver, IdentityState
from core.models import Decision
from core.observer import StreamObserver
from core.ports import KeyValueStorePort
from core.processor import BubbleProcessor, PipelineContext
from core.settings_state import SettingsState

LOGGER = logging.getLogger(__name__)


class PageWatcher:
    """Applies feed batches and owns the current pipeline."""

    def __init__(
        self,
        store: KeyValueStorePort,
        settings_state: SettingsState,
        identity: IdentityState,
        dispatcher: NotificationDispatcher,
        mirror: DomMirror,
        config: PipelineConfig = PipelineConfig(),
        clock: Clock = monotonic_ms,
    ) -> None:
        self._store = store
        self._settings_state = settings_state
        self._identity = identity
        self._dispatcher = dispatcher
        self._mirror = mirror
        self._config = config
        self._clock = clock
        self._processor: Optional[BubbleProcessor] = None
        self._observer: Optional[StreamObserver] = None
        self._resolver = IdentityResolver(identity, store)
        store.subscribe(self._on_store_changed)

    @property
    def processor(self) -> Optional[BubbleProcessor]:
        return self._processor

    @property
    def resolver(self) -> IdentityResolver:
        return self._resolver

    def load_identity(self) -> None:
        self._resolver.load()

    def handle_records(self, records: Iterable[Dict[str, Any]]) -> List[Decision]:
        """Apply one feed batch; never raises."""

        try:
            batch = self._mirror.apply(records)
        except Exception:
            LOGGER.exception("Error while applying page records")
            return []

        if batch.snapshot:
            self._start_pipeline()
        if self._observer is None:
            return []
        return self._observer.on_batch(batch.added)

    def _start_pipeline(self) -> None:
        context = PipelineContext.create(
            surface=self._mirror,
            settings=self._settings_state,
            identity=self._identity,
            config=self._config,
            clock=self._clock,
        )
        self._processor = BubbleProcessor(context, self._dispatcher)
        # The nickname form on a new page is a new element; hook it again.
        self._resolver = IdentityResolver(self._identity, self._store)
        self._observer = StreamObserver(self._processor, self._resolver)
        try:
            self._processor.start()
        except Exception:
            LOGGER.exception("Error while priming existing bubbles")

    def _on_store_changed(self, changes: Dict[str, Any]) -> None:
        if MY_NAME_KEY in changes and self._identity.learn(changes[MY_NAME_KEY]):
            LOGGER.info("My name updated from store: %s", self._identity.name)
