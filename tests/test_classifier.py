from __future__ import annotations

from core.classifier import extract_message, is_private_tab_on
from core.models import MessageEvent
from core.render import RenderNode


class RootSurface:
    def __init__(self, root: RenderNode) -> None:
        self.root = root

    def select_one(self, selector):
        return self.root.select_one(selector)

    def select_all(self, selector):
        return self.root.select_all(selector)

    def listen(self, node, event_types, callback) -> None:
        raise AssertionError("classifier must not attach listeners")


def _bubble(sender_children: list, content_children: list) -> RenderNode:
    return RenderNode(
        "div",
        {"data-sentry-element": "BubbleWrapper"},
        [
            RenderNode("span", {"data-sentry-component": "SenderName"}, sender_children),
            RenderNode("div", {"data-sentry-element": "MessageContent"}, content_children),
        ],
    )


def test_extracts_sender_and_paragraph_body() -> None:
    bubble = _bubble(["Bob"], [RenderNode("p", children=["  hello there  "]), "(edited)"])
    assert extract_message(bubble) == MessageEvent(sender="Bob", body="hello there")


def test_multiline_body_keeps_line_breaks() -> None:
    paragraph = RenderNode("p", children=["line one", RenderNode("br"), "line two"])
    event = extract_message(_bubble(["Bob"], [paragraph]))

    assert event == MessageEvent(sender="Bob", body="line one\nline two")
    assert event.signature == "Bob::line one\nline two"


def test_body_falls_back_to_whole_content_region() -> None:
    bubble = _bubble(["Bob"], [" sticker ", RenderNode("img", {"alt": "x"})])
    assert extract_message(bubble) == MessageEvent(sender="Bob", body="sticker")


def test_sender_is_normalized() -> None:
    bubble = _bubble(["\uff22\uff4f\uff42 \u200bKim\n"], [RenderNode("p", children=["hi"])])
    event = extract_message(bubble)
    assert event is not None
    assert event.sender == "BobKim"


def test_missing_parts_yield_none() -> None:
    assert extract_message(_bubble([], [RenderNode("p", children=["hi"])])) is None
    assert extract_message(_bubble(["Bob"], [RenderNode("p", children=["   "])])) is None
    assert extract_message(RenderNode("div", {"data-sentry-element": "BubbleWrapper"})) is None


def test_signature_joins_sender_and_body() -> None:
    assert MessageEvent(sender="Bob", body="hi").signature == "Bob::hi"


def test_private_tab_detection() -> None:
    def root(label: str, state: str) -> RenderNode:
        return RenderNode(
            "body",
            children=[
                RenderNode(
                    "button",
                    {"role": "radio", "data-state": state},
                    [RenderNode("span", {"data-sentry-component": "ChatTabItemContent"}, [label])],
                )
            ],
        )

    assert is_private_tab_on(RootSurface(root("Private", "on")))
    assert not is_private_tab_on(RootSurface(root("Private", "off")))
    assert not is_private_tab_on(RootSurface(root("All", "on")))
    assert not is_private_tab_on(RootSurface(RenderNode("body")))
