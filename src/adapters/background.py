"""Notification boundary.

Receives NOTIFY messages from the detection pipeline and turns them into
native alerts through a sink on a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Set

from core.models import NOTIFY_MESSAGE_TYPE
from core.ports import NotificationSinkPort

LOGGER = logging.getLogger(__name__)

DEFAULT_TITLE = "ZEP"
DEFAULT_BODY = "새 메시지가 도착했어요"


def _clean(value: Any, default: str) -> str:
    text = "" if value is None else str(value)
    return text.strip() or default


class NotificationBackground:
    """Dispatch boundary between the pipeline and the notification sink."""

    def __init__(
        self,
        sink: NotificationSinkPort,
        icon_url: Optional[str] = None,
    ) -> None:
        self._sink = sink
        self._icon_url = icon_url
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    def post(self, message: dict[str, Any]) -> None:
        """Fire-and-forget delivery used as the pipeline's message sender.

        Raises RuntimeError once the boundary is closed or has no running
        loop; the sender treats that as a dropped notification.
        """

        if self._closed:
            raise RuntimeError("notification boundary is closed")
        task = asyncio.get_running_loop().create_task(self.on_message(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def on_message(self, message: Any) -> bool:
        """Create an alert for a NOTIFY message; anything else is ignored."""

        if not isinstance(message, dict) or message.get("type") != NOTIFY_MESSAGE_TYPE:
            return False

        payload = message.get("payload") or {}
        title = _clean(payload.get("title"), DEFAULT_TITLE)
        body = _clean(payload.get("body"), DEFAULT_BODY)
        try:
            await asyncio.to_thread(
                self._sink.create,
                type="basic",
                icon_url=self._icon_url,
                title=title,
                message=body,
            )
        except Exception as exc:
            LOGGER.warning("Notification sink failed: %s", exc)
            return False
        return True

    async def close(self) -> None:
        """Stop accepting messages and wait for in-flight alerts."""

        self._closed = True
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
