"""
File helpers shared by the downloaders and the relay.

Temp files are named with 128 random bits so concurrent jobs never
collide; each job only deletes files it created.
"""

import logging
import re
import secrets
from pathlib import Path
from typing import Optional, Tuple, Union

from ..domain.errors import CleanupFailed

logger = logging.getLogger(__name__)

# 16 random bytes -> 32 hex chars
TEMP_NAME_BYTES = 16

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._\-]")


def generate_temp_path(temp_dir: Union[str, Path], extension: str = "") -> Path:
    """Return a fresh, unused path inside ``temp_dir``.

    The directory is created if needed. The file itself is not created.
    """
    directory = Path(temp_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"{secrets.token_hex(TEMP_NAME_BYTES)}{extension}"


def sanitize_file_name(file_name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``."""
    return _UNSAFE_CHARS.sub("_", file_name)


def split_extension(file_name: str) -> Tuple[str, str]:
    """Split ``movie.final.mp4`` into ``("movie.final", ".mp4")``.

    A leading dot (``.bashrc``) is part of the stem, not an extension.
    """
    path = Path(file_name)
    return path.stem, path.suffix


def part_display_name(file_name: str, part_index: int) -> str:
    """Insert ``.partN`` before the extension: ``x.mp4`` -> ``x.part2.mp4``."""
    stem, extension = split_extension(file_name)
    return f"{stem}.part{part_index}{extension}"


def remove_file(path: Optional[Union[str, Path]]) -> bool:
    """Delete ``path`` if it exists.

    Returns True if a file was removed, False if there was nothing to
    remove. Raises CleanupFailed when the file exists but cannot be
    deleted.
    """
    if path is None:
        return False
    target = Path(path)
    try:
        target.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise CleanupFailed(target, str(e)) from e
    logger.debug(f"Deleted {target}")
    return True


def remove_file_quietly(path: Optional[Union[str, Path]]) -> bool:
    """Best-effort ``remove_file``: a CleanupFailed is logged, never raised."""
    try:
        return remove_file(path)
    except CleanupFailed as e:
        logger.error(f"Cleanup error: {e}")
        return False
