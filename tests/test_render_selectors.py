from __future__ import annotations

import pytest

from core.render import RenderNode, parse_selector


def _tree() -> RenderNode:
    return RenderNode(
        "body",
        children=[
            RenderNode(
                "button",
                {"role": "radio", "data-state": "on"},
                [RenderNode("span", {"data-sentry-component": "ChatTabItemContent"}, ["Private"])],
            ),
            RenderNode(
                "button",
                {"role": "radio", "data-state": "off"},
                [RenderNode("span", {"data-sentry-component": "ChatTabItemContent"}, ["All"])],
            ),
            RenderNode("section", children=[RenderNode("p", children=["first"])]),
            RenderNode("p", children=["second"]),
        ],
    )


def test_descendant_selector_respects_ancestor_conditions() -> None:
    selector = parse_selector(
        'button[role="radio"][data-state="on"] span[data-sentry-component="ChatTabItemContent"]'
    )
    matches = _tree().select_all(selector)
    assert [node.text for node in matches] == ["Private"]


def test_select_all_returns_document_order() -> None:
    assert [node.text for node in _tree().select_all("p")] == ["first", "second"]


def test_attribute_presence_and_single_quotes() -> None:
    node = RenderNode("input", {"placeholder": "Enter your nickname", "disabled": ""})
    assert node.matches("input[disabled]")
    assert node.matches("[placeholder='Enter your nickname']")
    assert not node.matches("input[placeholder=Nickname]")


def test_text_concatenates_subtree_and_trims() -> None:
    node = RenderNode("div", children=["  Hello ", RenderNode("b", children=["world"]), "  "])
    assert node.text == "Hello world"


def test_invalid_selector_is_rejected() -> None:
    with pytest.raises(ValueError):
        parse_selector("div > p")
    with pytest.raises(ValueError):
        parse_selector("   ")


def test_text_breaks_lines_at_br_and_blocks() -> None:
    node = RenderNode(
        "div",
        children=[
            RenderNode("p", children=["first ", RenderNode("br"), RenderNode("br"), " second"]),
            RenderNode("p", children=["third"]),
            RenderNode("span", children=["inline"]),
        ],
    )
    assert node.text == "first\nsecond\nthird\ninline"
