import logging
import itertools
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Set

import pytest

# Set test environment variables
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_TO_FILE"] = "false"
os.environ["TELEGRAM_BOT_TOKEN"] = "test:token"
os.environ["BACKUP_CHANNEL_ID"] = "-100123456"
os.environ["RELAY_API_KEY"] = "test-api-key"
os.environ["TEMP_DIR"] = tempfile.mkdtemp(prefix="media-relay-test-")


@pytest.fixture(autouse=True)
def _strip_file_handlers():
    """Remove file handlers from root logger so tests never write to logs/."""
    root = logging.getLogger()
    saved = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    for h in saved:
        root.removeHandler(h)
    yield
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            root.removeHandler(h)
    for h in saved:
        root.addHandler(h)


class FakeBackupStore:
    """In-memory BackupStore that records every hop.

    Upload attempts are numbered from 1. ``fail_on`` makes those attempts
    raise a network error, ``no_handle_on`` makes them return None.
    """

    def __init__(
        self,
        fail_on: Optional[Set[int]] = None,
        no_handle_on: Optional[Set[int]] = None,
        fail_forward: bool = False,
    ) -> None:
        self.fail_on = fail_on or set()
        self.no_handle_on = no_handle_on or set()
        self.fail_forward = fail_forward
        self.attempted_names: List[str] = []
        self.attempted_paths: List[Path] = []
        self.uploaded: List[bytes] = []
        self.captions: List[str] = []
        self.forwards: List[tuple] = []
        self.backup_channels: List[Optional[int]] = []

    async def upload_to_backup(
        self, path, display_name, caption, backup_channel_id=None
    ):
        self.attempted_names.append(display_name)
        self.backup_channels.append(backup_channel_id)
        self.attempted_paths.append(Path(path))
        attempt = len(self.attempted_names)
        if attempt in self.fail_on:
            raise ConnectionError("network unreachable")
        self.uploaded.append(Path(path).read_bytes())
        self.captions.append(caption)
        if attempt in self.no_handle_on:
            return None
        return f"file-id-{attempt}"

    async def forward(self, handle, destination):
        if self.fail_forward:
            raise ConnectionError("forward refused")
        self.forwards.append((handle, destination))


class FakeNotifier:
    """Notifier that records messages per chat."""

    def __init__(self) -> None:
        self.messages: List[tuple] = []

    async def notify(self, destination, text):
        self.messages.append((destination, text))

    @property
    def texts(self) -> List[str]:
        return [text for _, text in self.messages]


@pytest.fixture
def backup_store():
    return FakeBackupStore()


@pytest.fixture
def make_backup_store():
    return FakeBackupStore


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def staging_dir(tmp_path):
    """Directory the relay stages parts in; inspect it for leaked files."""
    directory = tmp_path / "staging"
    directory.mkdir()
    return directory


@pytest.fixture
def make_artifact(tmp_path):
    """Create a DownloadedArtifact with deterministic, position-dependent bytes."""
    from src.domain.artifacts import DownloadedArtifact

    source_dir = tmp_path / "downloads"
    source_dir.mkdir()
    counter = itertools.count()

    def _make(size: int, name: str = "movie.mp4") -> DownloadedArtifact:
        data = bytes(i % 251 for i in range(size))
        path = source_dir / f"artifact-{next(counter)}.bin"
        path.write_bytes(data)
        return DownloadedArtifact(path=path, declared_name=name, byte_size=size)

    return _make
