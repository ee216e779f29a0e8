"""Tests for the commit history tree."""

import json

import pytest

from pydantic import ValidationError

from minivcs.core import ChangeAction, Commit, CommitChange
from minivcs.errors import FormatError
from minivcs.history import CommitNode, CommitTree


def make_commit(n: int, author: str = "ada") -> Commit:
    return Commit.create(
        author=author,
        message=f"commit {n}",
        changes=[CommitChange(action=ChangeAction.ADD, path=f"f{n}.txt", digest=f"{n:040x}")],
        timestamp=1700000000 + n,
    )


@pytest.fixture
def tree(tmp_path):
    return CommitTree(tmp_path / "history.json")


class TestAppend:

    def test_empty_tree(self, tree):
        assert tree.head is tree.root
        assert tree.root.is_root
        assert len(tree) == 0
        assert tree.get_main_child(tree.root) is None

    def test_append_advances_head(self, tree):
        c1 = make_commit(1)
        node = tree.append(c1)
        assert tree.head is node
        assert node.parent is tree.root
        assert tree.get_main_child(tree.root) is c1

    def test_linear_history(self, tree):
        commits = [make_commit(i) for i in range(3)]
        for c in commits:
            tree.append(c)
        assert list(tree.main_line()) == commits
        assert len(tree) == 3

    def test_later_children_are_alternatives(self, tree):
        c1, c2, c3 = make_commit(1), make_commit(2), make_commit(3)
        first = tree.append(c1)
        tree.append(c2)
        tree.head = first
        tree.append(c3)

        assert [n.commit for n in first.children] == [c2, c3]
        assert tree.get_main_child(first) is c2
        assert list(tree.main_line()) == [c1, c2]

    def test_commit_is_frozen(self):
        c = make_commit(1)
        with pytest.raises(ValidationError):
            c.message = "changed"


class TestPersistence:

    def test_round_trip_restores_parents_and_head(self, tree):
        c1, c2, c3 = make_commit(1), make_commit(2), make_commit(3)
        first = tree.append(c1)
        tree.append(c2)
        tree.head = first
        tree.append(c3)
        tree.save()

        loaded = CommitTree(tree.path)
        loaded.load()

        assert len(loaded) == 3
        assert loaded.head.commit == c3
        for node in loaded.walk():
            for child in node.children:
                assert child.parent is node
        assert loaded.root.parent is None
        first_loaded = loaded.find(c1.id)
        assert [n.commit.id for n in first_loaded.children] == [c2.id, c3.id]
        assert loaded.get_main_child(first_loaded) == c2

    def test_saved_document_shape(self, tree):
        c1 = make_commit(1)
        tree.append(c1)
        tree.save()

        doc = json.loads(tree.path.read_text())
        assert doc["version"] == 1
        assert doc["head"] == c1.id
        root, child = doc["nodes"]
        assert root == {"commit": None, "children": 1}
        assert child["children"] == 0
        assert child["commit"]["parent"] == "-"
        assert child["commit"]["changes"][0]["action"] == 1

    def test_missing_or_empty_file_is_empty_history(self, tree):
        tree.load()
        assert len(tree) == 0
        tree.path.write_text("")
        tree.load()
        assert tree.head is tree.root

    def test_load_replaces_state(self, tree):
        tree.append(make_commit(1))
        tree.save()
        tree.append(make_commit(2))

        tree.load()

        assert len(tree) == 1

    def test_head_with_colliding_ids(self, tree):
        """Two commits by one author in the same second share an id."""
        change = CommitChange(action=ChangeAction.ADD, path="a.txt", digest="a" * 40)
        tree.append(Commit.create("ada", "one", [change], timestamp=10))
        second = Commit.create("ada", "two", [change], timestamp=10)
        tree.append(second)
        tree.save()

        tree.load()

        assert tree.head.commit.message_text == "two"
        assert tree.head.children == []

    def test_deep_history(self, tree):
        """Long linear histories save and load without hitting the recursion limit."""
        for i in range(1500):
            tree.append(make_commit(i))
        tree.save()

        loaded = CommitTree(tree.path)
        loaded.load()
        assert len(list(loaded.main_line())) == 1500
        assert loaded.head.commit.id == tree.head.commit.id


class TestFormatErrors:

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        '{"version": 2, "head": null, "nodes": [{"commit": null, "children": 0}]}',
        '{"version": 1, "head": null, "nodes": []}',
        '{"version": 1, "head": null, "nodes": [{"commit": null}]}',
        '{"version": 1, "head": null, "nodes": [{"commit": null, "children": -1}]}',
        '{"version": 1, "head": null, "nodes": [{"commit": null, "children": true}]}',
        '{"version": 1, "head": "abc", "nodes": [{"commit": null, "children": 0}]}',
        '{"version": 1, "head": null, "nodes": [{"commit": null, "children": 1}, {"commit": null, "children": 0}]}',
        '{"version": 1, "head": null, "nodes": [{"commit": null, "children": 1}, {"commit": {"id": "x"}, "children": 0}]}',
    ])
    def test_malformed(self, tree, content):
        tree.path.write_text(content)
        with pytest.raises(FormatError):
            tree.load()

    def test_commit_without_changes_rejected(self, tree):
        c = make_commit(1).model_dump(mode="json")
        c["changes"] = []
        doc = {"version": 1, "head": None, "nodes": [
            {"commit": None, "children": 1},
            {"commit": c, "children": 0},
        ]}
        tree.path.write_text(json.dumps(doc))
        with pytest.raises(FormatError):
            tree.load()

    @pytest.mark.parametrize("counts, message", [
        ([1], "ends before all children"),
        ([1, 0, 0], "does not belong to any parent"),
    ])
    def test_child_counts_must_match(self, tree, counts, message):
        records = [{"commit": None, "children": counts[0]}]
        records.extend(
            {"commit": make_commit(i).model_dump(mode="json"), "children": n}
            for i, n in enumerate(counts[1:])
        )
        tree.path.write_text(json.dumps({"version": 1, "head": None, "nodes": records}))
        with pytest.raises(FormatError, match=message):
            tree.load()


class TestCommitNode:

    def test_add_child_sets_parent(self):
        root = CommitNode()
        child = root.add_child(make_commit(1))
        assert child.parent is root
        assert root.main_child is child
        assert not child.is_root
