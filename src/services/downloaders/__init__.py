"""Downloader variants behind the Downloader port."""

from .direct import DirectDownloader
from .router import DownloaderRouter, build_downloader
from .youtube import YouTubeDownloader
from .ytdlp_cli import YtDlpCliDownloader

__all__ = [
    "DirectDownloader",
    "DownloaderRouter",
    "YouTubeDownloader",
    "YtDlpCliDownloader",
    "build_downloader",
]
