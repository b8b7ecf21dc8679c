from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from indexcapture.utils import format_timestamp


class CaptureKind(str, Enum):
    RASTER = "raster"
    HTML = "html"

    @property
    def extension(self) -> str:
        return "png" if self is CaptureKind.RASTER else "html"

    @classmethod
    def from_suffix(cls, suffix: str) -> CaptureKind | None:
        return {".png": cls.RASTER, ".html": cls.HTML}.get(suffix.lower())


@dataclass
class PageArtifact:
    page_number: int
    path: Path
    kind: CaptureKind
    href: str = ""              # path relative to the gallery pages


@dataclass
class Run:
    index_key: str
    timestamp: str
    pages: list[PageArtifact] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def date(self) -> str:
        return format_timestamp(self.timestamp)


@dataclass
class GalleryIndex:
    key: str
    runs: list[Run]             # newest first

    @property
    def display_name(self) -> str:
        return self.key.replace("_", " ")

    @property
    def latest(self) -> Run:
        return self.runs[0]

    @property
    def snapshot_count(self) -> int:
        return sum(run.page_count for run in self.runs)


@dataclass
class FetchedResource:
    url: str
    content_type: str
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")
