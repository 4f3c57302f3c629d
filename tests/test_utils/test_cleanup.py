"""
Tests for the stale temp file sweep.

Tests cover:
- Age-based deletion and dry runs
- Missing directories
- The settings-driven wrapper
- Graceful cancellation of the periodic task
"""

import asyncio
import os
import time
from unittest.mock import patch

import pytest

from src.utils.cleanup import (
    DEFAULT_MAX_AGE_HOURS,
    cleanup_stale_files,
    cleanup_temp_dir,
    run_periodic_cleanup,
)


def _make_file(directory, name, size=10, age_hours=0.0):
    path = directory / name
    path.write_bytes(b"x" * size)
    if age_hours:
        old = time.time() - age_hours * 3600
        os.utime(path, (old, old))
    return path


class TestCleanupStaleFiles:
    def test_default_age(self):
        assert DEFAULT_MAX_AGE_HOURS == 6

    def test_deletes_only_old_files(self, tmp_path):
        old = _make_file(tmp_path, "old.mp4", size=100, age_hours=10)
        fresh = _make_file(tmp_path, "fresh.mp4", size=50)

        found, deleted, freed = cleanup_stale_files(tmp_path, max_age_hours=6)

        assert (found, deleted, freed) == (2, 1, 100)
        assert not old.exists()
        assert fresh.exists()

    def test_dry_run_keeps_files(self, tmp_path):
        old = _make_file(tmp_path, "old.mp4", size=100, age_hours=10)

        found, deleted, freed = cleanup_stale_files(tmp_path, 6, dry_run=True)

        assert deleted == 1
        assert old.exists()

    def test_ignores_subdirectories(self, tmp_path):
        (tmp_path / "sub").mkdir()
        assert cleanup_stale_files(tmp_path, 0) == (0, 0, 0)

    def test_missing_directory(self, tmp_path):
        assert cleanup_stale_files(tmp_path / "nope") == (0, 0, 0)


class TestCleanupTempDir:
    def test_uses_settings(self, tmp_path):
        _make_file(tmp_path, "old.bin", size=7, age_hours=48)

        with patch("src.utils.cleanup.get_settings") as mock_settings:
            mock_settings.return_value.temp_path = tmp_path
            mock_settings.return_value.stale_file_max_age_hours = 24
            summary = cleanup_temp_dir()

        assert summary == {
            "directory": str(tmp_path),
            "found": 1,
            "deleted": 1,
            "bytes_freed": 7,
            "dry_run": False,
        }


class TestRunPeriodicCleanup:
    @pytest.mark.asyncio
    async def test_runs_and_stops_on_cancel(self):
        with patch("src.utils.cleanup.cleanup_temp_dir") as mock_cleanup:
            task = asyncio.create_task(run_periodic_cleanup(interval_hours=0.00001))
            await asyncio.sleep(0.2)
            task.cancel()
            await asyncio.sleep(0)
            await asyncio.wait_for(task, timeout=1)

        assert mock_cleanup.called
        assert task.done()

    @pytest.mark.asyncio
    async def test_survives_cleanup_errors(self):
        with patch(
            "src.utils.cleanup.cleanup_temp_dir", side_effect=OSError("disk gone")
        ) as mock_cleanup:
            task = asyncio.create_task(run_periodic_cleanup(interval_hours=0.00001))
            await asyncio.sleep(0.2)
            task.cancel()
            await asyncio.wait_for(task, timeout=1)

        assert mock_cleanup.call_count >= 2
