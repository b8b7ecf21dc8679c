from __future__ import annotations

import logging
from pathlib import Path

from indexcapture.models import CaptureKind, PageArtifact, Run

logger = logging.getLogger(__name__)


def artifact_path(root: Path, index_key: str, timestamp: str, page_number: int, kind: CaptureKind) -> Path:
    filename = f"{index_key}_{timestamp}_page{page_number}.{kind.extension}"
    return root / index_key / timestamp / filename


class ArtifactStore:
    """screenshots/<index>/<timestamp>/<index>_<timestamp>_page<N>.<ext>"""

    def __init__(self, root: Path):
        self.root = Path(root)

    def run_dir(self, index_key: str, timestamp: str) -> Path:
        return self.root / index_key / timestamp

    def prepare_run(self, index_key: str, timestamp: str) -> Run:
        folder = self.run_dir(index_key, timestamp)
        folder.mkdir(parents=True, exist_ok=True)
        logger.info("Saving snapshots to: %s", folder)
        return Run(index_key=index_key, timestamp=timestamp)

    def page(self, run: Run, page_number: int, kind: CaptureKind) -> PageArtifact:
        path = artifact_path(self.root, run.index_key, run.timestamp, page_number, kind)
        return PageArtifact(page_number=page_number, path=path, kind=kind)
