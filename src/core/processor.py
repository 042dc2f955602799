"""Core bubble processing pipeline.

This module is integration-agnostic. It only relies on ports for the render
surface and the notification boundary, so the same pipeline runs against a
live page mirror or a hand-built tree in tests.

The handler enforces a strict order, first match wins:
1) Element already handled
2) Private-tab policy (when enabled)
3) Classification
4) Warm-up window
5) Self-authored message
6) Content signature already notified recently
7) Cooldown
8) Record signature + dispatch

Every terminal branch marks the element seen before returning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional

from core.classifier import extract_message, is_private_tab_on
from core.config import PipelineConfig
from core.contract import BUBBLE_SELECTOR
from core.dedup import SeenElements, SignatureLRU, make_signature
from core.dispatcher import NotificationDispatcher
from core.gates import Clock, RateLimiter, WarmupGate, monotonic_ms
from core.identity import IdentityState
from core.models import Decision
from core.ports import RenderSurfacePort
from core.render import RenderNode
from core.settings_state import SettingsState

LOGGER = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """All mutable pipeline state, scoped to one watched page."""

    surface: RenderSurfacePort
    settings: SettingsState
    identity: IdentityState
    warmup: WarmupGate
    limiter: RateLimiter
    seen: SeenElements = field(default_factory=SeenElements)
    signatures: SignatureLRU = field(default_factory=SignatureLRU)

    @classmethod
    def create(
        cls,
        surface: RenderSurfacePort,
        settings: SettingsState,
        identity: IdentityState,
        config: PipelineConfig = PipelineConfig(),
        clock: Clock = monotonic_ms,
    ) -> "PipelineContext":
        return cls(
            surface=surface,
            settings=settings,
            identity=identity,
            warmup=WarmupGate(config.warmup_ms, clock),
            limiter=RateLimiter(clock),
            signatures=SignatureLRU(config.signature_capacity),
        )


class BubbleProcessor:
    """Orchestrates gating, dedup, rate limiting and dispatch."""

    def __init__(self, context: PipelineContext, dispatcher: NotificationDispatcher) -> None:
        self._context = context
        self._dispatcher = dispatcher

    @property
    def context(self) -> PipelineContext:
        return self._context

    def start(self) -> int:
        """Prime existing bubbles and start the warm-up clock."""

        primed = self.prime()
        self._context.warmup.start()
        LOGGER.info("Pipeline started (%s existing bubbles primed)", primed)
        return primed

    def prime(self) -> int:
        """Mark every bubble already on the page as seen, without classifying it."""

        return self._context.seen.update(self._context.surface.select_all(BUBBLE_SELECTOR))

    def private_tab_state(self) -> Optional[bool]:
        """Current private-tab state, or None when the policy is off."""

        if not self._context.settings.current.only_when_private_on:
            return None
        return is_private_tab_on(self._context.surface)

    def handle(self, bubble: RenderNode, private_tab_on: Optional[bool] = None) -> Decision:
        """Process one candidate bubble through the pipeline.

        ``private_tab_on`` lets a caller share one tab lookup across a batch;
        when omitted the surface is queried here.
        """

        ctx = self._context
        if bubble in ctx.seen:
            return Decision.ALREADY_SEEN
        # Marked up front: no branch below may leave the element re-processable.
        ctx.seen.add(bubble)

        settings = ctx.settings.current
        if settings.only_when_private_on:
            if private_tab_on is None:
                private_tab_on = is_private_tab_on(ctx.surface)
            if not private_tab_on:
                return Decision.NOT_PRIVATE

        event = extract_message(bubble)
        if event is None:
            LOGGER.debug("Skipping bubble without sender or body: %r", bubble)
            return Decision.UNCLASSIFIED

        # History replayed right after joining is not live activity.
        if not ctx.warmup.is_ready():
            return Decision.WARMING_UP

        if ctx.identity.matches(event.sender):
            return Decision.SELF

        signature = make_signature(event)
        if signature in ctx.signatures:
            LOGGER.debug("Dedup skip for %s (same message)", event.sender)
            return Decision.DUPLICATE

        if not ctx.limiter.try_acquire(settings.cooldown_ms):
            LOGGER.debug("Cooldown skip for %s", event.sender)
            return Decision.RATE_LIMITED

        ctx.signatures.add(signature)
        self._dispatcher.notify(event.sender, event.body)
        LOGGER.info("Notified message from %s", event.sender)
        return Decision.NOTIFIED
