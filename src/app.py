"""Application entry point for the zepwatch notifier."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from playwright.async_api import async_playwright

import settings
from adapters.background import NotificationBackground
from adapters.desktop_notifier import DesktopNotificationSink
from adapters.dom_mirror import DomMirror
from adapters.json_store import JsonKeyValueStore
from adapters.playwright_page import PageBridge
from adapters.telegram_bot_sink import TelegramBotSink
from client import build_browser_context
from core.config import PipelineConfig
from core.dispatcher import NotificationDispatcher
from core.identity import IdentityState
from core.ports import NotificationSinkPort
from core.settings_state import SettingsState
from pipeline import PageWatcher

NAME = "ZEPWATCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/zepwatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    # Handlers stay unfiltered so the runtime ``debug`` setting can lower
    # individual logger levels without touching this configuration.
    logging.basicConfig(level=level, handlers=handlers)


def _build_sink() -> NotificationSinkPort:
    # Select the sink based on configuration to keep the pipeline independent
    # from delivery details.
    if settings.NOTIFICATION_METHOD == "bot":
        load_dotenv()
        bot_token = os.getenv("BOT_API")
        if not bot_token:
            raise RuntimeError("BOT_API is required when notification_method=bot")
        if not settings.BOT_CHAT_ID:
            raise RuntimeError("notifications.bot_chat_id is required for bot notifications")
        return TelegramBotSink(bot_token=bot_token, chat_id=str(settings.BOT_CHAT_ID))
    if settings.NOTIFICATION_METHOD == "desktop":
        return DesktopNotificationSink()
    raise RuntimeError("notification_method must be 'desktop' or 'bot'")


async def _watch() -> None:
    logger = logging.getLogger(__name__)

    store = JsonKeyValueStore(settings.STORE_PATH)
    settings_state = SettingsState(store)
    current = settings_state.load()
    settings_state.subscribe()
    logger.info(
        "Settings loaded: only_when_private_on=%s cooldown_ms=%s",
        current.only_when_private_on,
        current.cooldown_ms,
    )

    sink = _build_sink()
    logger.info("Selected notification method - %s", settings.NOTIFICATION_METHOD)

    async with async_playwright() as playwright:
        context = await build_browser_context(
            playwright,
            settings.BROWSER_PROFILE_DIR,
            headless=settings.BROWSER_HEADLESS,
        )
        bridge = PageBridge(context)
        background = NotificationBackground(sink, icon_url=settings.ICON_PATH)
        watcher = PageWatcher(
            store=store,
            settings_state=settings_state,
            identity=IdentityState(),
            dispatcher=NotificationDispatcher(background.post),
            mirror=DomMirror(on_listen=bridge.request_listen),
            config=PipelineConfig(
                warmup_ms=settings.WARMUP_MS,
                signature_capacity=settings.SIGNATURE_CAPACITY,
            ),
        )
        watcher.load_identity()

        store_task = asyncio.create_task(store.watch(settings.STORE_POLL_SECONDS))
        try:
            await bridge.open(settings.PAGE_URL)
            logger.info("Observer running")
            # One consumer: batches are applied strictly one after another.
            async for records in bridge.batches():
                watcher.handle_records(records)
            logger.info("Page closed")
        finally:
            store_task.cancel()
            await background.close()
            await context.close()


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting zepwatch")
    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        logger.info("Stopped by user")


def _setup() -> None:
    _print_banner()
    from frontend.app import SettingsPanelApp

    SettingsPanelApp(store_path=settings.STORE_PATH).run()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="zepwatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the watcher")
    subparsers.add_parser("config", help="Launch the settings TUI")

    args = parser.parse_args(argv)
    if args.command == "config":
        _setup()
        return
    _run()


if __name__ == "__main__":
    main()
