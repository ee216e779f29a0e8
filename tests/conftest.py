"""Shared test fixtures and utilities."""

from pathlib import Path

import pytest

from minivcs.config import VcsConfig
from minivcs.context import ProjectContext
from minivcs.ops import init_repository
from minivcs.repository import Repository
from minivcs.snapshots import SnapshotStore


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's global config and environment out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.delenv("MINIVCS_AUTHOR", raising=False)
    monkeypatch.delenv("MINIVCS_MAX_FILE_SIZE", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    return home


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """Empty working directory, set as cwd."""
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def initialized_ctx(project_dir):
    """Create an initialized project context."""
    return init_repository(project_dir)


@pytest.fixture
def repo(initialized_ctx):
    """Open a repository handle with a known author."""
    config = VcsConfig(author="Test User <test@example.org>")
    return Repository.open(initialized_ctx, config)


@pytest.fixture
def reopen(initialized_ctx):
    """Factory fixture to build a fresh handle from what is on disk."""
    def _reopen():
        return Repository.open(initialized_ctx, VcsConfig(author="Test User <test@example.org>"))
    return _reopen


@pytest.fixture
def store(tmp_path):
    """Stand-alone snapshot store over a work tree in tmp_path/work."""
    work = tmp_path / "work"
    work.mkdir()
    meta = tmp_path / "meta"
    s = SnapshotStore(work, meta / "index", meta / "objects")
    s.initialize()
    s.load()
    return s


@pytest.fixture
def write_file(project_dir):
    """Factory fixture to write files relative to the project directory."""
    def _write(path: str, content: str = "test content") -> Path:
        file_path = project_dir / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        return file_path
    return _write


@pytest.fixture
def test_files(write_file):
    """Create common test files in the project directory."""
    def make_files():
        return {
            "file1.txt": write_file("file1.txt", "content1"),
            "file2.txt": write_file("file2.txt", "content2"),
            "src/main.py": write_file("src/main.py", "print('hello')"),
            "data/data.csv": write_file("data/data.csv", "a,b,c\n1,2,3"),
        }
    return make_files
