"""Tests for working-state classification."""

from minivcs.core import ChangeAction
from minivcs.ops import add_files, commit
from minivcs.working_state import FileState, compute_status


def _states(report):
    return {entry.path: entry.state for entry in report.tracked}


class TestComputeStatus:

    def test_empty_project(self, repo):
        report = compute_status(repo)
        assert report.is_clean
        assert report.tracked == []
        assert report.untracked == []

    def test_untracked_files(self, repo, test_files):
        test_files()

        report = compute_status(repo)

        assert report.untracked == ["data/data.csv", "file1.txt", "file2.txt", "src/main.py"]

    def test_staged_new_file(self, repo, write_file):
        write_file("a.txt", "v1")
        add_files(repo, ["a.txt"])

        report = compute_status(repo)

        assert [(r.path, r.action) for r in report.staged] == [("a.txt", ChangeAction.ADD)]
        (entry,) = report.tracked
        assert entry.state == FileState.UNMODIFIED
        assert entry.staged == ChangeAction.ADD
        assert report.untracked == []

    def test_modified_and_deleted(self, repo, write_file):
        write_file("a.txt", "v1")
        b = write_file("b.txt", "b")
        write_file("c.txt", "c")
        add_files(repo, ["."])
        commit(repo, "first")

        write_file("a.txt", "v2")
        b.unlink()

        report = compute_status(repo)

        assert _states(report) == {
            "a.txt": FileState.MODIFIED,
            "b.txt": FileState.DELETED,
            "c.txt": FileState.UNMODIFIED,
        }
        assert report.has_changes
        assert not report.staged

    def test_modified_after_staging(self, repo, write_file):
        write_file("a.txt", "v1")
        add_files(repo, ["a.txt"])
        write_file("a.txt", "v2")

        (entry,) = compute_status(repo).tracked

        assert entry.state == FileState.MODIFIED
        assert entry.is_staged

    def test_ignored_untracked(self, repo, write_file):
        write_file(".minivcsignore", "*.log\n")
        write_file("app.log", "noise")

        assert compute_status(repo).untracked == [".minivcsignore"]
        assert compute_status(repo, include_ignored=True).untracked == [
            ".minivcsignore", "app.log",
        ]

    def test_read_only(self, repo, write_file):
        write_file("a.txt", "v1")
        add_files(repo, ["a.txt"])
        write_file("a.txt", "v2")
        ctx = repo.ctx
        before = {p: p.read_bytes() for p in [ctx.index_path, ctx.staging_path, ctx.tracked_path]}
        blobs_before = sorted(repo.store.blobs)

        compute_status(repo)

        assert {p: p.read_bytes() for p in before} == before
        assert sorted(repo.store.blobs) == blobs_before
