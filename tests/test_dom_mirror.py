from __future__ import annotations

import gc
import weakref

from adapters.dom_mirror import DomMirror
from core.contract import PRIVATE_TAB_SELECTOR


def _bubble_tree(node_id: int, sender: str, body: str) -> dict:
    return {
        "id": node_id,
        "tag": "div",
        "attrs": {"data-sentry-element": "BubbleWrapper"},
        "children": [
            {
                "id": node_id + 1,
                "tag": "span",
                "attrs": {"data-sentry-component": "SenderName"},
                "children": [{"text": sender}],
            },
            {
                "id": node_id + 2,
                "tag": "div",
                "attrs": {"data-sentry-element": "MessageContent"},
                "children": [{"text": body}],
            },
        ],
    }


def _snapshot() -> dict:
    return {
        "kind": "snapshot",
        "node": {
            "id": 1,
            "tag": "BODY",
            "attrs": {},
            "children": [
                {"id": 2, "tag": "div", "attrs": {"class": "chat"}, "children": [_bubble_tree(10, "Bob", "old")]},
            ],
        },
    }


def test_snapshot_builds_tree_and_reports_no_additions() -> None:
    mirror = DomMirror()
    batch = mirror.apply([_snapshot()])

    assert batch.snapshot
    assert batch.added == []
    assert mirror.root is not None and mirror.root.tag == "body"
    assert len(mirror.select_all('[data-sentry-element="BubbleWrapper"]')) == 1
    assert mirror.get(11).text == "Bob"


def test_children_record_reports_only_new_subtrees() -> None:
    mirror = DomMirror()
    mirror.apply([_snapshot()])
    existing = mirror.get(10)

    batch = mirror.apply(
        [{"kind": "children", "parent": 2, "children": [{"ref": 10}, _bubble_tree(20, "Carol", "new")]}]
    )

    assert [node.node_id for node in batch.added] == [20]
    assert mirror.get(10) is existing
    assert existing.parent is mirror.get(2)
    assert [n.node_id for n in mirror.get(2).element_children] == [10, 20]


def test_removed_nodes_are_forgotten_and_reclaimable() -> None:
    mirror = DomMirror()
    mirror.apply([_snapshot()])
    ref = weakref.ref(mirror.get(10))

    mirror.apply([{"kind": "children", "parent": 2, "children": []}])
    gc.collect()

    assert mirror.get(10) is None
    assert mirror.get(11) is None
    assert ref() is None


def test_node_moved_within_batch_survives() -> None:
    mirror = DomMirror()
    mirror.apply([_snapshot()])
    bubble = mirror.get(10)
    mirror.apply(
        [
            {"kind": "children", "parent": 2, "children": []},
            {"kind": "children", "parent": 1, "children": [{"ref": 2}, {"ref": 10}]},
        ]
    )

    assert mirror.get(10) is bubble
    assert bubble.parent is mirror.root


def test_text_and_attribute_updates() -> None:
    mirror = DomMirror()
    mirror.apply([_snapshot()])

    mirror.apply(
        [
            {"kind": "children", "parent": 11, "children": [{"text": "Robert"}]},
            {"kind": "attr", "id": 2, "name": "data-state", "value": "on"},
            {"kind": "attr", "id": 2, "name": "class", "value": None},
            {"kind": "attr", "id": 999, "name": "x", "value": "y"},
        ]
    )

    assert mirror.get(11).text == "Robert"
    assert mirror.get(2).attrs == {"data-state": "on"}


def test_unknown_parent_and_refs_are_ignored() -> None:
    mirror = DomMirror()
    mirror.apply([_snapshot()])

    batch = mirror.apply(
        [
            {"kind": "children", "parent": 404, "children": [_bubble_tree(30, "X", "y")]},
            {"kind": "children", "parent": 2, "children": [{"ref": 10}, {"ref": 77}]},
            {"kind": "mystery"},
        ]
    )

    assert batch.added == []
    assert [n.node_id for n in mirror.get(2).element_children] == [10]


def test_listen_registers_locally_and_requests_page_listeners() -> None:
    requests: list[tuple[int, tuple[str, ...]]] = []
    mirror = DomMirror(on_listen=lambda node_id, types: requests.append((node_id, types)))
    mirror.apply([_snapshot()])
    received: list[tuple[str, dict]] = []

    mirror.listen(mirror.get(11), ["input", "keydown"], lambda t, d: received.append((t, d)))
    batch = mirror.apply([{"kind": "event", "id": 11, "type": "keydown", "value": "Bo", "key": "Enter"}])

    assert requests == [(11, ("input", "keydown"))]
    assert batch.events == 1
    assert received == [("keydown", {"value": "Bo", "key": "Enter"})]
    assert mirror.get(11).value == "Bo"


def _tab_snapshot() -> dict:
    return {
        "kind": "snapshot",
        "node": {
            "id": 1,
            "tag": "body",
            "attrs": {},
            "children": [
                {
                    "id": 2,
                    "tag": "div",
                    "attrs": {},
                    "children": [
                        {
                            "id": 5,
                            "tag": "button",
                            "attrs": {"role": "radio", "data-state": "on"},
                            "children": [
                                {
                                    "id": 6,
                                    "tag": "span",
                                    "attrs": {"data-sentry-component": "ChatTabItemContent"},
                                    "children": [{"text": "Private"}],
                                }
                            ],
                        }
                    ],
                }
            ],
        },
    }


def test_reattached_element_keeps_identity_across_batches() -> None:
    mirror = DomMirror()
    mirror.apply([_tab_snapshot()])
    tab = mirror.get(5)

    mirror.apply([{"kind": "children", "parent": 2, "children": []}])
    assert mirror.select_one(PRIVATE_TAB_SELECTOR) is None

    # The page re-sends a previously removed element in full.
    resent = _tab_snapshot()["node"]["children"][0]["children"][0]
    batch = mirror.apply([{"kind": "children", "parent": 2, "children": [resent]}])

    assert [n.node_id for n in mirror.get(2).element_children] == [5]
    assert mirror.get(5) is tab
    assert batch.added == [tab]
    assert mirror.select_one(PRIVATE_TAB_SELECTOR).text == "Private"


def test_ref_to_detached_but_alive_element_resolves() -> None:
    mirror = DomMirror()
    mirror.apply([_tab_snapshot()])
    tab = mirror.get(5)

    mirror.apply([{"kind": "children", "parent": 2, "children": []}])
    mirror.apply([{"kind": "children", "parent": 2, "children": [{"ref": 5}]}])

    assert [n.node_id for n in mirror.get(2).element_children] == [5]
    assert tab.parent is mirror.get(2)
    assert mirror.select_one(PRIVATE_TAB_SELECTOR) is not None


def test_child_wrapped_into_new_subtree_keeps_new_parent() -> None:
    mirror = DomMirror()
    mirror.apply([_tab_snapshot()])

    wrapper = {"id": 40, "tag": "div", "attrs": {}, "children": [{"ref": 5}]}
    mirror.apply([{"kind": "children", "parent": 2, "children": [wrapper]}])

    assert mirror.get(5).parent is mirror.get(40)
    assert mirror.select_one(PRIVATE_TAB_SELECTOR) is not None
