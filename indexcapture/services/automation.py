"""
Narrow browser capability set used by the capture flow.

NavigationController and the snapshot capturers only talk to PageAutomation /
ElementRef, so they can run against Playwright or an in-memory fake.
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

import httpx
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from indexcapture.models import FetchedResource

logger = logging.getLogger(__name__)


class ElementRef(ABC):
    @abstractmethod
    async def wait_for(self, timeout_ms: int) -> None:
        """Block until attached and visible, raise on timeout."""

    @abstractmethod
    async def click(self) -> None: ...

    @abstractmethod
    async def is_visible(self, timeout_ms: int) -> bool: ...

    @abstractmethod
    async def is_disabled(self) -> bool: ...


class PageAutomation(ABC):
    @property
    @abstractmethod
    def url(self) -> str: ...

    @abstractmethod
    async def goto(self, url: str, timeout_ms: int) -> None: ...

    @abstractmethod
    def find_by_text(self, selector: str, pattern: re.Pattern[str]) -> ElementRef: ...

    @abstractmethod
    def find_by_label(self, selector: str, label: str) -> ElementRef: ...

    @abstractmethod
    async def wait(self, ms: int) -> None: ...

    @abstractmethod
    async def render_image(self) -> bytes:
        """Full-page PNG of the current state."""

    @abstractmethod
    async def serialize_dom(self) -> str:
        """Outer HTML of the live document element, without doctype."""

    @abstractmethod
    async def fetch_resource(self, url: str) -> FetchedResource: ...


class PlaywrightElement(ElementRef):
    def __init__(self, locator: Locator):
        self._locator = locator

    async def wait_for(self, timeout_ms: int) -> None:
        await self._locator.wait_for(state="visible", timeout=timeout_ms)

    async def click(self) -> None:
        await self._locator.click()

    async def is_visible(self, timeout_ms: int) -> bool:
        try:
            await self._locator.wait_for(state="visible", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return False
        return True

    async def is_disabled(self) -> bool:
        return await self._locator.is_disabled()


class PlaywrightAutomation(PageAutomation):
    def __init__(self, page: Page, client: httpx.AsyncClient):
        self.page = page
        self.client = client

    @property
    def url(self) -> str:
        return self.page.url

    async def goto(self, url: str, timeout_ms: int) -> None:
        await self.page.goto(url, timeout=timeout_ms)

    def find_by_text(self, selector: str, pattern: re.Pattern[str]) -> ElementRef:
        return PlaywrightElement(self.page.locator(selector).filter(has_text=pattern).first)

    def find_by_label(self, selector: str, label: str) -> ElementRef:
        return PlaywrightElement(self.page.locator(f'{selector}[aria-label="{label}"]').first)

    async def wait(self, ms: int) -> None:
        await self.page.wait_for_timeout(ms)

    async def render_image(self) -> bytes:
        return await self.page.screenshot(full_page=True)

    async def serialize_dom(self) -> str:
        return await self.page.evaluate("() => document.documentElement.outerHTML")

    async def fetch_resource(self, url: str) -> FetchedResource:
        r = await self.client.get(url)
        r.raise_for_status()
        ct = r.headers.get("content-type", "application/octet-stream").split(";")[0].strip()
        return FetchedResource(url=url, content_type=ct, content=r.content)
