"""
One browser session for a whole capture batch: a single context and page,
seeded with the site's consent cookies.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from urllib.parse import urlparse

import httpx
from playwright.async_api import BrowserContext, async_playwright

from indexcapture.config import Settings
from indexcapture.services.automation import PlaywrightAutomation

logger = logging.getLogger(__name__)


def consent_cookies(settings: Settings, hostname: str) -> list[dict]:
    return [
        {"name": "consentDate", "value": settings.consent_date, "domain": hostname, "path": "/"},
        {"name": "consentUUID", "value": settings.consent_uuid, "domain": hostname, "path": "/"},
    ]


async def initialize_consent_cookies(context: BrowserContext, settings: Settings, first_url: str) -> None:
    hostname = urlparse(first_url).hostname or ""
    await context.add_cookies(consent_cookies(settings, hostname))
    logger.info("Consent cookies initialized for domain: %s", hostname)


@asynccontextmanager
async def open_session(settings: Settings, first_url: str) -> AsyncIterator[PlaywrightAutomation]:
    # releases run in reverse order, each one even if a later-opened one raised
    async with AsyncExitStack() as stack:
        p = await stack.enter_async_context(async_playwright())
        browser = await p.chromium.launch(
            headless=settings.headless,
            slow_mo=settings.slow_mo_ms,
            args=["--no-sandbox", "--disable-blink-features=AutomationControlled"],
        )
        stack.callback(logger.info, "Browser closed")
        stack.push_async_callback(browser.close)

        context = await browser.new_context(
            viewport={"width": settings.viewport_width, "height": settings.viewport_height},
            user_agent=settings.user_agent,
        )
        stack.push_async_callback(context.close)

        page = await context.new_page()
        stack.push_async_callback(page.close)

        await initialize_consent_cookies(context, settings, first_url)
        logger.info("Session initialized with consent cookies")

        client = await stack.enter_async_context(
            httpx.AsyncClient(
                timeout=settings.resource_timeout,
                follow_redirects=True,
                headers={"User-Agent": settings.user_agent},
            )
        )
        yield PlaywrightAutomation(page, client)
