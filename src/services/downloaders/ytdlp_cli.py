"""Downloader that shells out to the yt-dlp binary.

Used for platforms where the library path is not wired up. yt-dlp picks
the output extension itself, so the result is found by scanning the temp
directory for the random prefix in the ``-o`` template.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from ...domain.artifacts import DownloadedArtifact
from ...domain.errors import DownloadFailed
from ...utils.files import generate_temp_path
from ..platform_detector import AUDIO_PLATFORMS, Platform
from .base import build_artifact, default_name, find_output_file, remove_outputs

logger = logging.getLogger(__name__)

# Keep the tail of stderr; yt-dlp can be very chatty.
MAX_STDERR_CHARS = 2000


class YtDlpCliDownloader:
    """Downloader for spotify, deezer, soundcloud and adult-site links."""

    def __init__(
        self,
        platform: Platform,
        temp_dir: Path,
        cookies_file: Optional[str] = None,
        binary: str = "yt-dlp",
    ) -> None:
        self.platform = platform
        self.temp_dir = Path(temp_dir)
        self.cookies_file = cookies_file
        self.binary = binary

    def build_args(self, url: str, prefix: Path) -> List[str]:
        """Command-line arguments for one download (without the binary)."""
        args = []
        if self.cookies_file and Path(self.cookies_file).is_file():
            args += ["--cookies", self.cookies_file]
        args += ["-f", "best", "-o", f"{prefix}.%(ext)s", url]
        if self.platform in AUDIO_PLATFORMS:
            args = ["--extract-audio", "--audio-format", "mp3"] + args
        return args

    async def download(
        self, url: str, custom_name: Optional[str] = None
    ) -> DownloadedArtifact:
        prefix = generate_temp_path(self.temp_dir)
        args = self.build_args(url, prefix)
        logger.info(f"Running {self.binary} for {self.platform.value}: {url}")

        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise DownloadFailed(f"{self.binary} binary not found") from e

        try:
            _, stderr = await proc.communicate()
        except asyncio.CancelledError:
            # Job timed out or was cancelled; don't leave yt-dlp running.
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            remove_outputs(prefix)
            raise

        if proc.returncode != 0:
            remove_outputs(prefix)
            stderr_text = stderr.decode(errors="replace").strip()[-MAX_STDERR_CHARS:]
            raise DownloadFailed(f"yt-dlp failed: {stderr_text}")

        output = find_output_file(prefix)
        if output is None:
            raise DownloadFailed("Downloaded file not found")

        declared_name = custom_name or default_name(
            url, output.suffix, fallback=self.platform.value
        )
        return build_artifact(output, declared_name)
