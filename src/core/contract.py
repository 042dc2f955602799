"""Render-tree contract for the ZEP chat UI.

These selectors must match the page exactly for extraction to work. They are
compiled once at import so the hot path only walks the tree.
"""

from __future__ import annotations

from core.render import parse_selector

BUBBLE_SELECTOR = parse_selector('[data-sentry-element="BubbleWrapper"]')
SENDER_SELECTOR = parse_selector('[data-sentry-component="SenderName"]')
CONTENT_SELECTOR = parse_selector('[data-sentry-element="MessageContent"]')
PARAGRAPH_SELECTOR = parse_selector("p")

# Active chat tab; its label reads "Private" when private mode is on.
PRIVATE_TAB_SELECTOR = parse_selector(
    'button[role="radio"][data-state="on"] span[data-sentry-component="ChatTabItemContent"]'
)
PRIVATE_TAB_LABEL = "Private"

# Profile-entry form. The placeholder is the stable marker; the structural
# input is only trusted when a profile heading is visible.
NICKNAME_INPUT_SELECTOR = parse_selector('input[placeholder="Enter your nickname"]')
FALLBACK_INPUT_SELECTOR = parse_selector('input[data-sentry-element="Input"]')
PROFILE_FORM_LABELS = ("create profile", "edit profile", "프로필 만들기", "프로필 설정")
HEADING_SELECTORS = tuple(parse_selector(tag) for tag in ("h1", "h2", "h3", "h4"))
BUTTON_SELECTOR = parse_selector("button")
ENTER_BUTTON_LABEL = "enter"
