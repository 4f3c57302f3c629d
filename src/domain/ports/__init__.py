"""Domain port protocols for decoupling the relay from infrastructure."""

from .backup_store import BackupStore
from .downloader import Downloader
from .notifier import Notifier

__all__ = ["BackupStore", "Downloader", "Notifier"]
