from __future__ import annotations

from core.config import PipelineConfig
from core.contract import PRIVATE_TAB_SELECTOR
from core.dispatcher import NotificationDispatcher
from core.identity import IdentityResolver, IdentityState
from core.models import Decision
from core.observer import StreamObserver, candidate_bubbles
from core.processor import BubbleProcessor, PipelineContext
from core.render import RenderNode
from core.settings_state import SettingsState


class FakeStore:
    def __init__(self, data=None) -> None:
        self.data = dict(data or {})

    def get(self, defaults):
        return {key: self.data.get(key, default) for key, default in defaults.items()}

    def set(self, items) -> None:
        self.data.update(items)

    def subscribe(self, callback) -> None:
        pass


class FakeSurface:
    def __init__(self, root: RenderNode) -> None:
        self.root = root

    def select_one(self, selector):
        return self.root.select_one(selector)

    def select_all(self, selector):
        return self.root.select_all(selector)

    def listen(self, node, event_types, callback) -> None:
        for event_type in event_types:
            node.add_listener(event_type, callback)


class CountingSurface(FakeSurface):
    def __init__(self, root: RenderNode) -> None:
        super().__init__(root)
        self.tab_lookups = 0

    def select_one(self, selector):
        if selector is PRIVATE_TAB_SELECTOR:
            self.tab_lookups += 1
        return super().select_one(selector)


class ExplodingProcessor:
    def __init__(self, wrapped: BubbleProcessor, bad: RenderNode) -> None:
        self._wrapped = wrapped
        self._bad = bad
        self.context = wrapped.context

    def private_tab_state(self):
        return self._wrapped.private_tab_state()

    def handle(self, bubble: RenderNode, private_tab_on=None) -> Decision:
        if bubble is self._bad:
            raise RuntimeError("boom")
        return self._wrapped.handle(bubble, private_tab_on)


def _bubble(sender: str, body: str) -> RenderNode:
    return RenderNode(
        "div",
        {"data-sentry-element": "BubbleWrapper"},
        [
            RenderNode("span", {"data-sentry-component": "SenderName"}, [sender]),
            RenderNode("div", {"data-sentry-element": "MessageContent"}, [body]),
        ],
    )


def _processor(
    root: RenderNode, store: FakeStore, surface: FakeSurface | None = None
) -> tuple[BubbleProcessor, list[dict]]:
    settings_state = SettingsState(store)
    settings_state.load()
    context = PipelineContext.create(
        surface=surface or FakeSurface(root),
        settings=settings_state,
        identity=IdentityState(),
        config=PipelineConfig(warmup_ms=0),
        clock=lambda: 0.0,
    )
    sent: list[dict] = []
    processor = BubbleProcessor(context, NotificationDispatcher(sent.append))
    processor.start()
    return processor, sent


def test_candidate_bubbles_direct_and_nested_in_feed_order() -> None:
    direct = _bubble("Bob", "one")
    nested_a = _bubble("Carol", "two")
    nested_b = _bubble("Dave", "three")
    wrapper = RenderNode("div", children=[RenderNode("ul", children=[nested_a]), nested_b])

    assert candidate_bubbles([direct, wrapper]) == [direct, nested_a, nested_b]


def test_candidate_bubbles_skips_repeats_within_batch() -> None:
    bubble = _bubble("Bob", "one")
    wrapper = RenderNode("div", children=[bubble])

    assert candidate_bubbles([wrapper, bubble, wrapper]) == [bubble]


def test_on_batch_drives_processor() -> None:
    root = RenderNode("body")
    processor, sent = _processor(root, FakeStore({"cooldownMs": 0, "onlyWhenPrivateOn": False}))
    observer = StreamObserver(processor)

    first = RenderNode("div", children=[_bubble("Bob", "one"), _bubble("Carol", "two")])
    root.append(first)
    assert observer.on_batch([first]) == [Decision.NOTIFIED, Decision.NOTIFIED]
    # Duplicate mutation record for an already handled subtree.
    assert observer.on_batch([first]) == [Decision.ALREADY_SEEN, Decision.ALREADY_SEEN]
    assert [m["payload"]["title"] for m in sent] == ["Bob", "Carol"]


def test_failure_on_one_bubble_does_not_escape_or_stop_batch() -> None:
    root = RenderNode("body")
    processor, sent = _processor(root, FakeStore({"cooldownMs": 0, "onlyWhenPrivateOn": False}))
    bad = _bubble("Bob", "one")
    good = _bubble("Carol", "two")
    observer = StreamObserver(ExplodingProcessor(processor, bad))

    assert observer.on_batch([bad, good]) == [Decision.NOTIFIED]
    assert [m["payload"]["title"] for m in sent] == ["Carol"]


def test_identity_hook_retried_until_form_appears() -> None:
    root = RenderNode("body")
    store = FakeStore({"onlyWhenPrivateOn": False})
    processor, _ = _processor(root, store)
    resolver = IdentityResolver(processor.context.identity, store)
    observer = StreamObserver(processor, resolver)

    observer.on_batch([])
    assert not resolver.hooked

    field = RenderNode("input", {"placeholder": "Enter your nickname"})
    root.append(field)
    observer.on_batch([field])
    assert resolver.hooked

    field.dispatch("change", {"value": "Bob"})
    assert observer.on_batch([_bubble("Bob", "mine")]) == [Decision.SELF]
    assert store.data["myNameAuto"] == "Bob"


def _private_tab(state: str = "on") -> RenderNode:
    return RenderNode(
        "button",
        {"role": "radio", "data-state": state},
        [RenderNode("span", {"data-sentry-component": "ChatTabItemContent"}, ["Private"])],
    )


def test_private_tab_looked_up_once_per_batch() -> None:
    root = RenderNode("body", children=[_private_tab()])
    surface = CountingSurface(root)
    processor, sent = _processor(root, FakeStore({"cooldownMs": 0}), surface)
    observer = StreamObserver(processor)
    surface.tab_lookups = 0

    batch = [_bubble("Bob", "one"), _bubble("Carol", "two"), _bubble("Dave", "three")]
    assert observer.on_batch(batch) == [Decision.NOTIFIED] * 3
    assert surface.tab_lookups == 1

    assert observer.on_batch([]) == []
    assert surface.tab_lookups == 1


def test_private_tab_off_rejects_whole_batch() -> None:
    root = RenderNode("body", children=[_private_tab("off")])
    processor, sent = _processor(root, FakeStore({"cooldownMs": 0}))
    observer = StreamObserver(processor)

    assert observer.on_batch([_bubble("Bob", "one"), _bubble("Carol", "two")]) == [
        Decision.NOT_PRIVATE,
        Decision.NOT_PRIVATE,
    ]
    assert sent == []


def test_no_tab_lookup_when_policy_disabled() -> None:
    root = RenderNode("body")
    surface = CountingSurface(root)
    processor, _ = _processor(root, FakeStore({"onlyWhenPrivateOn": False}), surface)

    StreamObserver(processor).on_batch([_bubble("Bob", "one")])

    assert surface.tab_lookups == 0
