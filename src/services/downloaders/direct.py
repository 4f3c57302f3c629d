"""Direct HTTP(S) file downloader using httpx streaming."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx

from ...domain.artifacts import DownloadedArtifact
from ...domain.errors import DownloadFailed
from ...utils.files import generate_temp_path, remove_file_quietly
from .base import build_artifact, default_name, url_extension

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 600.0  # 10 minutes
FALLBACK_EXTENSION = ".bin"
CHUNK_SIZE = 1024 * 1024

CONTENT_TYPE_EXTENSIONS = {
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "audio/mpeg": ".mp3",
    "audio/mp4": ".m4a",
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "application/zip": ".zip",
}


def guess_extension(content_type: str) -> str:
    """Map a Content-Type header to a file extension ("" if unknown)."""
    mime = content_type.split(";", 1)[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(mime, "")


class DirectDownloader:
    """Streams any other URL straight to disk."""

    def __init__(
        self,
        temp_dir: Path,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.temp_dir = Path(temp_dir)
        self.timeout = timeout
        self._transport = transport

    async def download(
        self, url: str, custom_name: Optional[str] = None
    ) -> DownloadedArtifact:
        file_path: Optional[Path] = None
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code != 200:
                        raise DownloadFailed(
                            f"Direct download failed with status: {response.status_code}"
                        )

                    extension = (
                        url_extension(url)
                        or guess_extension(response.headers.get("content-type", ""))
                        or FALLBACK_EXTENSION
                    )
                    file_path = generate_temp_path(self.temp_dir, extension)

                    with open(file_path, "wb") as f:
                        async for chunk in response.aiter_bytes(CHUNK_SIZE):
                            await asyncio.to_thread(f.write, chunk)

        except DownloadFailed:
            remove_file_quietly(file_path)
            raise
        except (httpx.HTTPError, OSError) as e:
            remove_file_quietly(file_path)
            raise DownloadFailed(f"Direct download failed: {e}") from e
        except asyncio.CancelledError:
            # Job timeout must not leave a partial file behind.
            remove_file_quietly(file_path)
            raise

        declared_name = custom_name or default_name(url, file_path.suffix)
        logger.info(f"Downloaded {url} to {file_path}")
        return build_artifact(file_path, declared_name)
