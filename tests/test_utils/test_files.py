"""Tests for temp naming, sanitization and file removal helpers."""

import os
from unittest.mock import patch

import pytest

from src.domain.errors import CleanupFailed
from src.utils.files import (
    generate_temp_path,
    part_display_name,
    remove_file,
    remove_file_quietly,
    sanitize_file_name,
    split_extension,
)


class TestGenerateTempPath:
    def test_random_hex_name_with_extension(self, tmp_path):
        path = generate_temp_path(tmp_path, ".mp4")

        assert path.parent == tmp_path
        assert path.suffix == ".mp4"
        assert len(path.stem) == 32
        int(path.stem, 16)
        assert not path.exists()

    def test_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "dir"

        generate_temp_path(target)

        assert target.is_dir()

    def test_names_are_unique(self, tmp_path):
        paths = {generate_temp_path(tmp_path) for _ in range(200)}
        assert len(paths) == 200


class TestNames:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("My Song (live).mp3", "My_Song__live_.mp3"),
            ("../../etc/passwd", ".._.._etc_passwd"),
            ("ok-name_1.tar.gz", "ok-name_1.tar.gz"),
            ("пісня.mp3", "_____.mp3"),
        ],
    )
    def test_sanitize(self, raw, expected):
        assert sanitize_file_name(raw) == expected

    def test_split_extension(self):
        assert split_extension("movie.final.mp4") == ("movie.final", ".mp4")
        assert split_extension("README") == ("README", "")
        assert split_extension(".bashrc") == (".bashrc", "")

    @pytest.mark.parametrize(
        "name,index,expected",
        [
            ("x.mp4", 1, "x.part1.mp4"),
            ("x.mp4", 12, "x.part12.mp4"),
            ("noext", 2, "noext.part2"),
            ("a.b.c", 3, "a.b.part3.c"),
        ],
    )
    def test_part_display_name(self, name, index, expected):
        assert part_display_name(name, index) == expected


class TestRemoveFile:
    def test_removes_existing(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"x")

        assert remove_file(path) is True
        assert not path.exists()

    def test_missing_file_is_not_an_error(self, tmp_path):
        assert remove_file(tmp_path / "gone") is False

    def test_none_is_ignored(self):
        assert remove_file(None) is False

    def test_permission_error_raises_cleanup_failed(self, tmp_path):
        path = tmp_path / "locked"
        path.write_bytes(b"x")

        with patch("pathlib.Path.unlink", side_effect=PermissionError("denied")):
            with pytest.raises(CleanupFailed) as exc_info:
                remove_file(path)

        assert exc_info.value.path == path

    def test_quiet_variant_logs_instead(self, tmp_path, caplog):
        path = tmp_path / "locked"
        path.write_bytes(b"x")

        with patch("pathlib.Path.unlink", side_effect=PermissionError("denied")):
            assert remove_file_quietly(path) is False

        assert "Cleanup error" in caplog.text
        assert os.path.exists(path)
