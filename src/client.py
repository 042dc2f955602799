"""Browser factory for zepwatch.

We explicitly manage the browser's lifecycle so it is obvious when the
session is created and when it ends.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from playwright.async_api import BrowserContext, Playwright


async def build_browser_context(
    playwright: Playwright,
    profile_dir: str,
    headless: bool = False,
) -> BrowserContext:
    """Launch Chromium with a persistent profile.

    ZEPWATCH_PROFILE_DIR and ZEPWATCH_HEADLESS (via python-dotenv) override
    the configured values so a machine can keep its profile outside the repo.
    """

    load_dotenv()

    profile_dir = os.getenv("ZEPWATCH_PROFILE_DIR", profile_dir)
    headless_env = os.getenv("ZEPWATCH_HEADLESS")
    if headless_env is not None:
        headless = headless_env.strip().lower() in {"1", "true", "yes"}

    os.makedirs(profile_dir, exist_ok=True)
    logging.getLogger(__name__).info("Launching Chromium (profile: %s)", profile_dir)

    return await playwright.chromium.launch_persistent_context(
        profile_dir,
        headless=headless,
        viewport={"width": 1280, "height": 800},
    )
