"""YouTube downloader backed by the yt_dlp library.

Fetches the best audio stream and converts it to mp3. The library call
runs in a worker thread; a cancelled download signals that thread through
a progress hook and removes whatever it wrote once it has stopped.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadCancelled
from yt_dlp.utils import DownloadError as YtDlpDownloadError

from ...domain.artifacts import DownloadedArtifact
from ...domain.errors import DownloadFailed
from ...utils.files import generate_temp_path, sanitize_file_name
from .base import build_artifact, find_output_file, remove_outputs

logger = logging.getLogger(__name__)


def make_cancel_hook(cancel: threading.Event):
    """yt_dlp progress hook that aborts the download once ``cancel`` is set."""

    def hook(status: Dict[str, Any]) -> None:
        if cancel.is_set():
            raise DownloadCancelled("download cancelled")

    return hook


class YouTubeDownloader:
    """Downloader for youtube.com / youtu.be links."""

    def __init__(self, temp_dir: Path, cookies_file: Optional[str] = None) -> None:
        self.temp_dir = Path(temp_dir)
        self.cookies_file = cookies_file

    def _build_options(
        self, prefix: Path, cancel: Optional[threading.Event] = None
    ) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "format": "bestaudio/best",
            "outtmpl": f"{prefix}.%(ext)s",
            "noplaylist": True,
            "quiet": True,
            "no_warnings": True,
            "postprocessors": [
                {"key": "FFmpegExtractAudio", "preferredcodec": "mp3"},
            ],
        }
        if self.cookies_file and Path(self.cookies_file).is_file():
            options["cookiefile"] = self.cookies_file
        if cancel is not None:
            options["progress_hooks"] = [make_cancel_hook(cancel)]
        return options

    def _download_blocking(
        self, url: str, prefix: Path, cancel: Optional[threading.Event] = None
    ) -> Dict[str, Any]:
        with YoutubeDL(self._build_options(prefix, cancel)) as ydl:
            return ydl.extract_info(url, download=True) or {}

    async def download(
        self, url: str, custom_name: Optional[str] = None
    ) -> DownloadedArtifact:
        prefix = generate_temp_path(self.temp_dir)
        cancel = threading.Event()
        worker = asyncio.ensure_future(
            asyncio.to_thread(self._download_blocking, url, prefix, cancel)
        )
        try:
            info = await asyncio.shield(worker)
        except asyncio.CancelledError:
            # The thread cannot be interrupted; stop it at the next progress
            # callback and delete its output once it has returned.
            cancel.set()
            worker.add_done_callback(lambda _: self._discard(worker, prefix))
            raise
        except YtDlpDownloadError as e:
            remove_outputs(prefix)
            raise DownloadFailed(f"YouTube download failed: {e}") from e
        except Exception as e:
            remove_outputs(prefix)
            logger.error(f"Unexpected yt_dlp error for {url}: {e}", exc_info=True)
            raise DownloadFailed(f"YouTube download failed: {e}") from e

        output = find_output_file(prefix)
        if output is None:
            raise DownloadFailed("YouTube download failed: output file not found")

        title = info.get("title") or "audio"
        declared_name = custom_name or f"{sanitize_file_name(title)}.mp3"
        logger.info(f"Downloaded YouTube audio '{title}' to {output}")
        return build_artifact(output, declared_name)

    @staticmethod
    def _discard(worker: asyncio.Future, prefix: Path) -> None:
        if not worker.cancelled() and worker.exception() is not None:
            logger.debug(f"Cancelled YouTube download stopped: {worker.exception()}")
        remove_outputs(prefix)
        logger.info(f"Removed output of cancelled YouTube download {prefix.name}")
