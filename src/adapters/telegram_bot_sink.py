"""Telegram Bot API notification sink.

Uses the Bot API for delivery so alerts can reach a phone when the desktop is
unattended.
"""

from __future__ import annotations

import html
import json
from typing import Optional
import urllib.error
import urllib.request


class TelegramBotSink:
    """Notification sink that sends alerts via the Telegram Bot API."""

    def __init__(self, bot_token: str, chat_id: str) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def create(self, *, type: str, icon_url: Optional[str], title: str, message: str) -> None:
        """Send the alert as a short HTML message."""

        payload = {
            "chat_id": self._chat_id,
            "text": f"<b>{html.escape(title)}</b>\n{html.escape(message)}",
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        # Blocking is fine here: the boundary runs sinks off the event loop.
        try:
            with urllib.request.urlopen(request, timeout=10):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Bot API error {e.code}: {body}") from e
