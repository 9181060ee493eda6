"""
Browser Bootstrap - Persistent Chromium context for the CLI.

The interpreter itself accepts any Playwright page; this module is only
the convenience used by ``bromato run``.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, TYPE_CHECKING

from playwright.async_api import async_playwright

from bromato.core.config import BromatoConfig

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_page(config: BromatoConfig) -> AsyncIterator["Page"]:
    """
    Launch a persistent browsing context and yield a fresh page.

    The user data directory is created if missing so cookies and local
    storage survive between runs.

    Example:
        >>> async with open_page(BromatoConfig(headless=True)) as page:
        ...     await page.goto("https://example.com")
    """
    os.makedirs(config.user_data_dir, exist_ok=True)

    async with async_playwright() as playwright:
        logger.info(f"[Browser] Launching Chromium (headless={config.headless}) in {config.user_data_dir}")
        context = await playwright.chromium.launch_persistent_context(
            config.user_data_dir,
            headless=config.headless,
        )
        try:
            page = await context.new_page()
            yield page
        finally:
            await context.close()
