"""Downloader port -- turns a URL into a local artifact."""

from typing import Optional, Protocol, runtime_checkable

from ..artifacts import DownloadedArtifact


@runtime_checkable
class Downloader(Protocol):
    """Downloads the media behind a URL into ephemeral storage.

    Raises DownloadFailed with a user-presentable message on failure.
    """

    async def download(
        self, url: str, custom_name: Optional[str] = None
    ) -> DownloadedArtifact: ...
