from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from indexcapture.models import CaptureKind
from indexcapture.utils import is_valid_url


class ConfigError(RuntimeError):
    """Raised when config.json is missing or does not describe a batch."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="INDEXCAPTURE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_name: str = "Index Capture"
    gallery_title: str = "Onvista Screenshots"
    log_level: str = "INFO"

    config_path: Path = Path("config.json")
    artifact_root: Path = Path("screenshots")
    # Gallery pages land next to the artifact root unless overridden
    output_dir: Path | None = None

    capture_kind: CaptureKind = CaptureKind.RASTER

    headless: bool = True
    slow_mo_ms: int = 100
    viewport_width: int = 1440
    viewport_height: int = 900
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    )

    navigation_timeout_ms: int = 30000
    sort_header_timeout_ms: int = 10000
    next_page_timeout_ms: int = 2000

    # Settle delays after UI actions
    sort_first_settle_ms: int = 500
    sort_second_settle_ms: int = 1000
    page_settle_ms: int = 3000
    url_settle_ms: int = 2000

    sort_header_pattern: str = r"Perf\. relativ"
    next_page_label: str = "Nächste Seite"

    consent_date: str = "2025-12-03T19:04:45.610Z"
    consent_uuid: str = "c870f882-6ae2-45a3-ad39-4e9553343e32_50"

    resource_timeout: int = 15

    @property
    def gallery_dir(self) -> Path:
        return self.output_dir or self.artifact_root.parent


class CaptureConfig(BaseModel):
    urls: list[str] = Field(min_length=1)

    @field_validator("urls")
    @classmethod
    def _check_urls(cls, urls: list[str]) -> list[str]:
        bad = [u for u in urls if not is_valid_url(u)]
        if bad:
            raise ValueError(f"invalid URL(s): {', '.join(bad)}")
        return urls


def load_capture_config(path: Path) -> CaptureConfig:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc}") from exc

    try:
        return CaptureConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"No usable URLs found in {path}: {exc}") from exc


settings = Settings()
