"""Utility modules for the media relay."""

from . import files
from . import task_tracker

__all__ = ["files", "task_tracker"]
