import re
from datetime import datetime
from urllib.parse import urlparse

UNKNOWN_INDEX = "unknown_index"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_INDEX_SUFFIX = re.compile(r"-Index-\d+$")
_TIMESTAMP = re.compile(r"^(\d{4})-(\d{2})-(\d{2})_(\d{2})-(\d{2})-(\d{2})$")


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def index_key_from_url(url: str) -> str:
    """Filesystem-safe index name, e.g. .../DAX-Index-20735 -> DAX."""
    try:
        segments = urlparse(url).path.split("/")
    except ValueError:
        return UNKNOWN_INDEX
    for segment in segments:
        if "Index" in segment:
            key = _INDEX_SUFFIX.sub("", segment).replace("-", "_")
            return key or UNKNOWN_INDEX
    return UNKNOWN_INDEX


def make_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def format_timestamp(timestamp: str) -> str:
    match = _TIMESTAMP.match(timestamp)
    if not match:
        return timestamp
    year, month, day, hour, minute, _ = match.groups()
    return f"{year}-{month}-{day} {hour}:{minute}"
