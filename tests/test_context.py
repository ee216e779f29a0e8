"""Tests for project discovery and path resolution."""

import pytest

from minivcs.constants import STORE_DIR
from minivcs.context import ProjectContext
from minivcs.errors import NotInitializedError


class TestDiscovery:

    def test_not_initialized(self, project_dir):
        with pytest.raises(NotInitializedError):
            ProjectContext()

    def test_found_from_subdirectory(self, initialized_ctx, monkeypatch):
        sub = initialized_ctx.root / "a" / "b"
        sub.mkdir(parents=True)
        monkeypatch.chdir(sub)

        assert ProjectContext().root == initialized_ctx.root

    def test_is_initialized_does_not_walk_up(self, initialized_ctx):
        sub = initialized_ctx.root / "sub"
        sub.mkdir()
        assert ProjectContext.is_initialized(initialized_ctx.root)
        assert not ProjectContext.is_initialized(sub)


class TestPaths:

    def test_to_project_relative(self, initialized_ctx, monkeypatch):
        root = initialized_ctx.root
        assert initialized_ctx.to_project_relative("a/b.txt") == "a/b.txt"
        assert initialized_ctx.to_project_relative(root / "c.txt") == "c.txt"

        (root / "sub").mkdir()
        monkeypatch.chdir(root / "sub")
        assert initialized_ctx.to_project_relative("../d.txt") == "d.txt"

    def test_outside_project(self, initialized_ctx, tmp_path):
        with pytest.raises(ValueError, match="outside project"):
            initialized_ctx.to_project_relative(tmp_path / "elsewhere.txt")

    def test_root_is_not_a_file(self, initialized_ctx):
        with pytest.raises(ValueError):
            initialized_ctx.to_project_relative(".")

    def test_store_paths(self, initialized_ctx):
        assert initialized_ctx.store_dir == initialized_ctx.root / STORE_DIR
        assert initialized_ctx.index_path.parent == initialized_ctx.store_dir


class TestIterFiles:

    def test_lists_files(self, initialized_ctx, test_files):
        test_files()
        assert sorted(initialized_ctx.iter_files()) == [
            "data/data.csv", "file1.txt", "file2.txt", "src/main.py",
        ]

    def test_skips_ignored_directories(self, initialized_ctx, write_file):
        write_file(".minivcsignore", "build/\n")
        write_file("build/out.bin", "x")
        write_file("src/a.py", "a")

        assert list(initialized_ctx.iter_files()) == [".minivcsignore", "src/a.py"]
        assert "build/out.bin" in list(initialized_ctx.iter_files(include_ignored=True))

    def test_never_lists_store(self, initialized_ctx):
        files = list(initialized_ctx.iter_files(include_ignored=True))
        assert not any(f.startswith(STORE_DIR) for f in files)

    def test_start_directory(self, initialized_ctx, test_files):
        test_files()
        start = initialized_ctx.root / "src"
        assert list(initialized_ctx.iter_files(start)) == ["src/main.py"]
