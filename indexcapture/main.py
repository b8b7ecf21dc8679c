from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from indexcapture.config import ConfigError, Settings, load_capture_config, settings
from indexcapture.models import Run
from indexcapture.services.capture import get_capturer
from indexcapture.services.gallery import GalleryBuilder
from indexcapture.services.navigator import NavigationController
from indexcapture.services.session import open_session
from indexcapture.storage.local import ArtifactStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def run_batch(urls: list[str], app_settings: Settings, session_factory: Callable = open_session) -> list[Run]:
    """Process every URL in order on one shared page; a failing URL never stops the batch."""
    store = ArtifactStore(app_settings.artifact_root)
    capturer = get_capturer(app_settings.capture_kind)
    runs: list[Run] = []

    logger.info("Found %d URL(s) to process", len(urls))
    try:
        async with session_factory(app_settings, urls[0]) as automation:
            controller = NavigationController(automation, capturer, store, app_settings)
            for url in urls:
                run = await controller.process_url(url)
                if run is not None:
                    runs.append(run)
                await automation.wait(app_settings.url_settle_ms)
    except Exception:
        logger.exception("Fatal error during capture batch")

    logger.info("All done! %d of %d URL(s) captured", len(runs), len(urls))
    return runs


def capture_main(app_settings: Settings | None = None, session_factory: Callable = open_session) -> int:
    app_settings = app_settings or settings
    configure_logging(app_settings.log_level)
    logger.info("%s: starting capture batch", app_settings.app_name)

    try:
        config = load_capture_config(app_settings.config_path)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1

    asyncio.run(run_batch(config.urls, app_settings, session_factory))
    return 0


def gallery_main(app_settings: Settings | None = None) -> int:
    app_settings = app_settings or settings
    configure_logging(app_settings.log_level)
    logger.info("%s: building gallery", app_settings.app_name)

    builder = GalleryBuilder(
        app_settings.artifact_root,
        output_dir=app_settings.gallery_dir,
        title=app_settings.gallery_title,
    )
    builder.build()
    return 0


if __name__ == "__main__":
    raise SystemExit(capture_main())
