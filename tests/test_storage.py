from pathlib import Path

from indexcapture.models import CaptureKind
from indexcapture.storage.local import ArtifactStore, artifact_path


def test_artifact_path_layout():
    path = artifact_path(Path("screenshots"), "DAX", "2025-01-01_10-00-00", 3, CaptureKind.RASTER)
    assert path == Path("screenshots/DAX/2025-01-01_10-00-00/DAX_2025-01-01_10-00-00_page3.png")


def test_artifact_path_html_extension():
    path = artifact_path(Path("screenshots"), "MDAX", "2025-01-01_10-00-00", 1, CaptureKind.HTML)
    assert path.name == "MDAX_2025-01-01_10-00-00_page1.html"


def test_artifact_path_is_deterministic():
    args = (Path("root"), "DAX", "2025-01-01_10-00-00", 7, CaptureKind.RASTER)
    assert artifact_path(*args) == artifact_path(*args)


def test_prepare_run_creates_directory(tmp_path):
    store = ArtifactStore(tmp_path / "screenshots")
    run = store.prepare_run("DAX", "2025-01-01_10-00-00")
    assert (tmp_path / "screenshots" / "DAX" / "2025-01-01_10-00-00").is_dir()
    assert run.pages == []

    page = store.page(run, 1, CaptureKind.RASTER)
    assert page.path.parent == store.run_dir("DAX", "2025-01-01_10-00-00")
    assert page.page_number == 1
