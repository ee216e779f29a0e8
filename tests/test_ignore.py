"""Tests for ignore pattern system."""

from minivcs.ignore import IgnoreSpec


class TestIgnoreSpec:
    """Test ignore pattern matching."""

    def test_default_patterns(self, tmp_path):
        ignore = IgnoreSpec(tmp_path)

        assert ignore.is_ignored(".git/config")
        assert ignore.is_ignored(".minivcs/index")
        assert ignore.is_ignored("__pycache__/test.pyc")
        assert ignore.is_ignored(".DS_Store")
        assert ignore.is_ignored("venv/lib/python3.9/site-packages/pip.py")

        assert not ignore.is_ignored("src/main.py")
        assert not ignore.is_ignored("data/file.csv")

    def test_custom_patterns(self, tmp_path):
        (tmp_path / ".minivcsignore").write_text("""
# Comments should be ignored
*.log
temp/
!temp/keep.txt
data/*.csv
""")
        ignore = IgnoreSpec(tmp_path)

        assert ignore.is_ignored("app.log")
        assert ignore.is_ignored("logs/debug.log")
        assert ignore.is_ignored("temp/file.txt")
        assert ignore.is_ignored("data/file.csv")
        assert not ignore.is_ignored("data/sub/file.csv")
        assert not ignore.is_ignored("src/main.py")

    def test_extra_patterns(self, tmp_path):
        ignore = IgnoreSpec(tmp_path, extra=["*.bak"])
        assert ignore.is_ignored("notes.bak")

    def test_should_traverse(self, tmp_path):
        (tmp_path / ".minivcsignore").write_text("build/\n")
        ignore = IgnoreSpec(tmp_path)

        assert ignore.should_traverse("src")
        assert not ignore.should_traverse("build")
        assert not ignore.should_traverse(".minivcs")
        assert not ignore.should_traverse(".minivcs/objects")
        assert not ignore.should_traverse(".git")
