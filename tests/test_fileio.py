"""Tests for bounded reads and atomic writes."""

import os
import stat
from unittest.mock import patch

import pytest

from minivcs.errors import SizeLimitExceededError, StorageError
from minivcs.fileio import read_bytes, read_lines, write_bytes_atomic, write_lines


class TestBoundedReads:

    def test_read_within_limit(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"12345")
        assert read_bytes(path, 5) == b"12345"

    def test_read_over_limit(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"123456")
        with pytest.raises(SizeLimitExceededError) as exc_info:
            read_bytes(path, 5)
        assert exc_info.value.size == 6
        assert exc_info.value.limit == 5
        # Size limit is a storage failure
        assert isinstance(exc_info.value, StorageError)

    def test_missing_file_propagates(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_bytes(tmp_path / "missing", 10)

    def test_read_lines_keeps_blank_lines(self, tmp_path):
        path = tmp_path / "f"
        path.write_text("a\n\nb\n")
        assert read_lines(path, 100) == ["a", "", "b"]


class TestAtomicWrites:

    def test_write_lines_truncates(self, tmp_path):
        path = tmp_path / "records"
        write_lines(path, ["one", "two", "three"])
        write_lines(path, ["only"])
        assert path.read_text() == "only\n"

    def test_empty_write(self, tmp_path):
        path = tmp_path / "records"
        write_lines(path, [])
        assert path.exists()
        assert path.read_text() == ""

    def test_mode_applied(self, tmp_path):
        path = tmp_path / "blob"
        write_bytes_atomic(path, b"data", mode=0o444)
        assert stat.S_IMODE(path.stat().st_mode) == 0o444

    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "a" / "b" / "c.txt"
        write_bytes_atomic(path, b"x")
        assert path.read_bytes() == b"x"

    def test_failed_rename_keeps_original_and_cleans_temp(self, tmp_path):
        path = tmp_path / "records"
        write_lines(path, ["original"])

        with patch("minivcs.fileio.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                write_lines(path, ["new"])

        assert path.read_text() == "original\n"
        leftovers = [p for p in os.listdir(tmp_path) if p.startswith(".records.tmp-")]
        assert leftovers == []
