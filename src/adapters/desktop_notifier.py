"""Native desktop alerts via plyer."""

from __future__ import annotations

import logging
from typing import Optional

from plyer import notification

LOGGER = logging.getLogger(__name__)


class DesktopNotificationSink:
    """Notification sink backed by the OS notification center."""

    def __init__(self, app_name: str = "zepwatch", timeout: int = 10) -> None:
        self._app_name = app_name
        self._timeout = timeout

    def create(self, *, type: str, icon_url: Optional[str], title: str, message: str) -> None:
        # plyer only has one alert style; ``type`` is accepted for the sink contract.
        notification.notify(
            title=title,
            message=message,
            app_name=self._app_name,
            app_icon=icon_url or "",
            timeout=self._timeout,
        )
        LOGGER.debug("Desktop notification shown: %s", title)
