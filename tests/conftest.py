import pytest

from indexcapture.config import Settings


@pytest.fixture
def app_settings(tmp_path):
    return Settings(
        artifact_root=tmp_path / "screenshots",
        config_path=tmp_path / "config.json",
    )
