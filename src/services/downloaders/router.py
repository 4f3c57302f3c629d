"""Routes a URL to the downloader for its platform."""

import logging
from pathlib import Path
from typing import Mapping, Optional

from ...core.config import Settings
from ...domain.artifacts import DownloadedArtifact
from ...domain.ports import Downloader
from ..platform_detector import Platform, detect_platform
from .direct import DirectDownloader
from .youtube import YouTubeDownloader
from .ytdlp_cli import YtDlpCliDownloader

logger = logging.getLogger(__name__)


class DownloaderRouter:
    """Downloader that dispatches by detected platform.

    Platforms without a registered downloader fall back to ``default``.
    """

    def __init__(
        self, downloaders: Mapping[Platform, Downloader], default: Downloader
    ) -> None:
        self._downloaders = dict(downloaders)
        self._default = default

    def downloader_for(self, platform: Platform) -> Downloader:
        return self._downloaders.get(platform, self._default)

    async def download(
        self, url: str, custom_name: Optional[str] = None
    ) -> DownloadedArtifact:
        platform = detect_platform(url)
        downloader = self.downloader_for(platform)
        logger.info(
            f"Downloading {platform.value} URL with {type(downloader).__name__}"
        )
        return await downloader.download(url, custom_name)


def build_downloader(settings: Settings) -> DownloaderRouter:
    """Wire the downloader variants from settings."""
    temp_dir: Path = settings.temp_path

    def cli(platform: Platform) -> YtDlpCliDownloader:
        return YtDlpCliDownloader(
            platform,
            temp_dir,
            cookies_file=settings.cookies_file,
            binary=settings.ytdlp_binary,
        )

    return DownloaderRouter(
        {
            Platform.YOUTUBE: YouTubeDownloader(
                temp_dir, cookies_file=settings.cookies_file
            ),
            Platform.SPOTIFY: cli(Platform.SPOTIFY),
            Platform.DEEZER: cli(Platform.DEEZER),
            Platform.SOUNDCLOUD: cli(Platform.SOUNDCLOUD),
            Platform.ADULT: cli(Platform.ADULT),
        },
        default=DirectDownloader(
            temp_dir, timeout=settings.direct_download_timeout_seconds
        ),
    )
