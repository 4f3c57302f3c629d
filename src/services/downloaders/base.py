"""Helpers shared by the downloader variants."""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from ...domain.artifacts import DownloadedArtifact
from ...domain.errors import DownloadFailed
from ...utils.files import remove_file_quietly, sanitize_file_name

logger = logging.getLogger(__name__)

# Longest suffix we accept as a real file extension taken from a URL
MAX_EXTENSION_LENGTH = 10


def url_basename(url: str) -> str:
    """Last path segment of a URL, without query string or fragment."""
    path = unquote(urlparse(url).path)
    return path.rstrip("/").rsplit("/", 1)[-1]


def url_extension(url: str) -> str:
    """File extension of the URL's last path segment, or "" if none."""
    suffix = Path(url_basename(url)).suffix
    if len(suffix) > MAX_EXTENSION_LENGTH or not suffix[1:].isalnum():
        return ""
    return suffix.lower()


def find_output_file(prefix: Path) -> Optional[Path]:
    """Find the file a downloader wrote for an output template ``prefix``.

    Downloaders append their own extension, so the exact name is only
    known after the fact. Partial ``.part`` files are ignored.
    """
    if not prefix.parent.exists():
        return None
    matches = sorted(
        p
        for p in prefix.parent.iterdir()
        if p.is_file() and p.name.startswith(prefix.name) and not p.name.endswith(".part")
    )
    return matches[0] if matches else None


def remove_outputs(prefix: Path) -> None:
    """Delete everything a failed download left behind under ``prefix``."""
    if not prefix.parent.exists():
        return
    for leftover in prefix.parent.glob(f"{prefix.name}*"):
        remove_file_quietly(leftover)


def build_artifact(path: Path, declared_name: str) -> DownloadedArtifact:
    """Stat a finished download and wrap it as an artifact."""
    try:
        size = path.stat().st_size
    except OSError as e:
        raise DownloadFailed(f"Downloaded file not readable: {e}") from e
    if size <= 0:
        remove_file_quietly(path)
        raise DownloadFailed("Downloaded file is empty")
    return DownloadedArtifact(path=path, declared_name=declared_name, byte_size=size)


def default_name(url: str, extension: str, fallback: str = "file") -> str:
    """Declared name derived from the URL when the requester gave none."""
    stem = sanitize_file_name(Path(url_basename(url)).stem) or fallback
    return f"{stem}{extension}"
