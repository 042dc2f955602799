"""Hand notify decisions to the notification boundary."""

from __future__ import annotations

import logging

from core.models import NOTIFY_MESSAGE_TYPE
from core.ports import MessageSender

LOGGER = logging.getLogger(__name__)

DEFAULT_TITLE = "ZEP"
DEFAULT_BODY = "새 메시지"


class NotificationDispatcher:
    """Fire-and-forget sender of NOTIFY messages.

    A failed send means the boundary is gone; the notification is dropped
    and never retried.
    """

    def __init__(self, send: MessageSender) -> None:
        self._send = send

    def notify(self, title: str, body: str) -> bool:
        message = {
            "type": NOTIFY_MESSAGE_TYPE,
            "payload": {
                "title": (title or "").strip() or DEFAULT_TITLE,
                "body": (body or "").strip() or DEFAULT_BODY,
            },
        }
        try:
            self._send(message)
        except Exception as exc:
            LOGGER.warning("Notification send failed: %s", exc)
            return False
        return True
