"""
Per-URL capture flow:

    load → sort by "Perf. relativ" (descending) → snapshot page n →
    next-page button usable? → click, n + 1 → ... → done

Pagination stops on the state of the "next" button (missing, hidden or
disabled), never on a page count.
"""
from __future__ import annotations

import logging
import re

from indexcapture.config import Settings
from indexcapture.models import Run
from indexcapture.services.automation import ElementRef, PageAutomation
from indexcapture.services.capture import SnapshotCapturer
from indexcapture.storage.local import ArtifactStore
from indexcapture.utils import index_key_from_url, make_timestamp

logger = logging.getLogger(__name__)


class NavigationController:
    def __init__(
        self,
        automation: PageAutomation,
        capturer: SnapshotCapturer,
        store: ArtifactStore,
        settings: Settings,
    ):
        self.automation = automation
        self.capturer = capturer
        self.store = store
        self.settings = settings

    async def process_url(self, url: str) -> Run | None:
        """Capture one run for `url`. Errors are logged and yield None."""
        logger.info("Processing URL: %s", url)
        try:
            await self.automation.goto(url, timeout_ms=self.settings.navigation_timeout_ms)
            logger.info("Page loaded")

            await self.sort_by_performance()

            run = self.store.prepare_run(index_key_from_url(url), make_timestamp())
            await self.paginate(run)
        except Exception:
            logger.exception("Error processing URL %s", url)
            return None

        logger.info("Completed: captured %d page(s) for %s", run.page_count, run.index_key)
        return run

    async def sort_by_performance(self) -> None:
        header = self.automation.find_by_text(
            "th", re.compile(self.settings.sort_header_pattern, re.IGNORECASE)
        )
        await header.wait_for(timeout_ms=self.settings.sort_header_timeout_ms)

        # first click sorts ascending, second flips to descending
        await header.click()
        logger.info('Clicked "Perf. relativ" first time')
        await self.automation.wait(self.settings.sort_first_settle_ms)
        await header.click()
        logger.info('Clicked "Perf. relativ" second time (descending)')
        await self.automation.wait(self.settings.sort_second_settle_ms)

    async def next_page_button(self) -> ElementRef | None:
        button = self.automation.find_by_label("button", self.settings.next_page_label)
        try:
            if not await button.is_visible(timeout_ms=self.settings.next_page_timeout_ms):
                return None
            if await button.is_disabled():
                logger.info("Next page button is disabled (last page reached)")
                return None
        except Exception as exc:
            logger.info("No pagination found: %s", exc)
            return None
        return button

    async def capture_page(self, run: Run, page_number: int) -> None:
        artifact = self.store.page(run, page_number, self.capturer.kind)
        logger.info("[Page %d] Capturing %s", page_number, artifact.path.name)
        await self.capturer.capture(self.automation, artifact.path)
        run.pages.append(artifact)
        logger.info("[Page %d] Saved: %s", page_number, artifact.path)

    async def paginate(self, run: Run) -> int:
        page_number = 1
        logger.info("Starting pagination loop...")

        while True:
            await self.capture_page(run, page_number)

            button = await self.next_page_button()
            if button is None:
                logger.info("[Page %d] No more pages available. Pagination complete.", page_number)
                break

            try:
                logger.info("[Page %d] Clicking next page button...", page_number)
                await button.click()
                await self.automation.wait(self.settings.page_settle_ms)
            except Exception as exc:
                logger.info("[Page %d] Error navigating to next page: %s", page_number, exc)
                break

            page_number += 1

        logger.info("Pagination finished. Total pages captured: %d", page_number)
        return page_number
