"""Static configuration for zepwatch.

Deployment settings (page, browser, pipeline constants, notifications,
logging) live in a single JSON file for quick edits without touching Python.
User-tunable runtime settings live in the key-value store instead, so the
watcher can pick them up while running.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _project_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# The chat page to watch, and the prefix used to find it again on alert click.
_page = _CONFIG.get("page", {})
PAGE_URL = _page.get("url", "https://zep.us/")

# A persistent profile keeps the ZEP login between runs.
_browser = _CONFIG.get("browser", {})
BROWSER_HEADLESS = bool(_browser.get("headless", False))
BROWSER_PROFILE_DIR = _project_path(_browser.get("profile_dir", ".zepwatch-profile"))

# Pipeline constants:
# - WARMUP_MS: history replay window after joining, never notified
# - SIGNATURE_CAPACITY: how many recent (sender, body) pairs are remembered
_pipeline = _CONFIG.get("pipeline", {})
WARMUP_MS = int(_pipeline.get("warmup_ms", 2500))
SIGNATURE_CAPACITY = int(_pipeline.get("signature_capacity", 200))

# Key-value store shared with the settings panel.
_store = _CONFIG.get("store", {})
STORE_PATH = _project_path(_store.get("path", "zepwatch-store.json"))
STORE_POLL_SECONDS = float(_store.get("poll_seconds", 1.0))

# Notification method switches sinks without changing core logic.
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "desktop")
ICON_PATH = _notifications.get("icon_path")
if ICON_PATH:
    ICON_PATH = _project_path(ICON_PATH)
# Bot chat id is only required when notification_method=bot.
BOT_CHAT_ID = _notifications.get("bot_chat_id")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
