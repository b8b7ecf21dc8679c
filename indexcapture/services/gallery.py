"""
Static gallery over the artifact tree:

    index.html        one card per index
    <index_key>.html  every run of that index, newest first

Pages are rebuilt from the directory layout alone on every call.
"""
from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, select_autoescape

from indexcapture.models import CaptureKind, GalleryIndex, PageArtifact, Run

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

_PAGE_NUMBER = re.compile(r"_page(\d+)\.[^.]+$")


def _page_sort_key(path: Path) -> tuple[int, int, str]:
    m = _PAGE_NUMBER.search(path.name)
    if m:
        return (0, int(m.group(1)), path.name)
    return (1, 0, path.name)


def _pluralize(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def _format_generated(moment: datetime) -> str:
    return moment.strftime("%B %d, %Y at %I:%M %p")


class GalleryBuilder:
    def __init__(self, artifact_root: Path, output_dir: Path | None = None, title: str = "Onvista Screenshots"):
        self.artifact_root = Path(artifact_root)
        self.output_dir = Path(output_dir) if output_dir is not None else self.artifact_root.parent
        self.title = title
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html"]),
            keep_trailing_newline=True,
        )
        self.env.filters["pluralize"] = _pluralize
        self.env.filters["urlquote"] = quote

    def _href(self, path: Path) -> str:
        return quote(os.path.relpath(path, self.output_dir).replace(os.sep, "/"))

    def _scan_run(self, index_key: str, run_dir: Path) -> Run:
        files = [
            f for f in run_dir.iterdir()
            if f.is_file() and CaptureKind.from_suffix(f.suffix) is not None
        ]
        run = Run(index_key=index_key, timestamp=run_dir.name)
        for number, f in enumerate(sorted(files, key=_page_sort_key), start=1):
            m = _PAGE_NUMBER.search(f.name)
            run.pages.append(
                PageArtifact(
                    page_number=int(m.group(1)) if m else number,
                    path=f,
                    kind=CaptureKind.from_suffix(f.suffix),
                    href=self._href(f),
                )
            )
        return run

    def scan(self) -> list[GalleryIndex]:
        if not self.artifact_root.is_dir():
            logger.info("No screenshots directory found at %s", self.artifact_root)
            return []

        indices: list[GalleryIndex] = []
        for index_dir in sorted(self.artifact_root.iterdir()):
            if not index_dir.is_dir():
                continue
            if index_dir.name == "index":
                logger.warning("Skipping %s: its page would overwrite index.html", index_dir)
                continue
            runs = [
                self._scan_run(index_dir.name, run_dir)
                for run_dir in index_dir.iterdir()
                if run_dir.is_dir()
            ]
            runs = [run for run in runs if run.pages]
            if not runs:
                continue
            runs.sort(key=lambda run: run.timestamp, reverse=True)
            indices.append(GalleryIndex(key=index_dir.name, runs=runs))
        return indices

    def render_index_page(self, indices: list[GalleryIndex], generated_at: datetime) -> str:
        template = self.env.get_template("gallery_index.html")
        return template.render(title=self.title, indices=indices, generated_on=_format_generated(generated_at))

    def render_detail_page(self, index: GalleryIndex) -> str:
        template = self.env.get_template("index_detail.html")
        return template.render(title=self.title, index=index)

    def build(self, generated_at: datetime | None = None) -> list[Path]:
        """Write the gallery pages and return their paths (empty if nothing was captured)."""
        logger.info("Generating gallery...")
        indices = self.scan()
        if not indices:
            logger.info("No screenshots found. Skipping gallery generation.")
            return []

        logger.info("Found %d indices", len(indices))
        self.output_dir.mkdir(parents=True, exist_ok=True)

        written: list[Path] = []
        index_page = self.output_dir / "index.html"
        index_page.write_text(self.render_index_page(indices, generated_at or datetime.now()), encoding="utf-8")
        logger.info("Generated %s", index_page.name)
        written.append(index_page)

        for index in indices:
            detail_page = self.output_dir / f"{index.key}.html"
            detail_page.write_text(self.render_detail_page(index), encoding="utf-8")
            logger.info("Generated %s", detail_page.name)
            written.append(detail_page)

        logger.info("Gallery generation complete!")
        return written
