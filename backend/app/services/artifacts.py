"""Audio artifact naming and storage on the local content directory."""

import asyncio
import logging
import re
from datetime import timezone
from pathlib import Path

from app.schemas.music import parse_timestamp

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")


def generate_audio_filename(zone: str, timestamp: str) -> str:
    """Derive `<zone>_<timestamp>.mp3` from a zone name and a reading time.

    >>> generate_audio_filename("Cafeteria!!", "2025-01-28T12:05:00")
    'cafeteria_2025-01-28t12-05-00-000z.mp3'
    """
    clean_zone = _NON_ALNUM.sub("_", zone).strip("_").lower() or "zone"
    try:
        iso = parse_timestamp(timestamp).astimezone(timezone.utc)
        stamp = iso.strftime("%Y-%m-%dT%H:%M:%S.") + f"{iso.microsecond // 1000:03d}Z"
    except ValueError:
        stamp = _NON_ALNUM.sub("-", timestamp.strip())
    clean_stamp = re.sub(r"[:.]", "-", stamp).lower()
    return f"{clean_zone}_{clean_stamp}.mp3"


class AudioStore:
    """Writes generated audio into one directory and maps it to a URL path."""

    def __init__(self, directory: str | Path, url_prefix: str = "/audio"):
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")

    def ensure_directory(self) -> None:
        # exist_ok makes concurrent first writes safe
        self.directory.mkdir(parents=True, exist_ok=True)

    async def save(self, data: bytes, filename: str) -> str:
        """Persist `data` as `filename` and return its servable path."""
        self.ensure_directory()
        path = self.path_for(filename)
        await asyncio.to_thread(path.write_bytes, data)
        logger.info("Saved audio %s (%d bytes)", path, len(data))
        return f"{self.url_prefix}/{filename}"

    def path_for(self, filename: str) -> Path:
        return self.directory / filename

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()
