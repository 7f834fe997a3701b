"""Tests for submodule status parsing and the submodule tree."""

from superrepo_sync.git.submodules import (
    SubmoduleEntry,
    SubmoduleTree,
    declared_submodule_paths,
    parse_status_line,
    parse_status_output,
)
from superrepo_sync.models import ChangeKind

SHA_A = "1" * 40
SHA_B = "2" * 40
SHA_C = "3" * 40


class TestParseStatusLine:
    def test_clean_entry(self):
        entry = parse_status_line(f" {SHA_A} libs/a (heads/main)")
        assert entry == SubmoduleEntry(" ", SHA_A, "libs/a", "heads/main")
        assert entry.change is None
        assert entry.initialized

    def test_new_commits(self):
        entry = parse_status_line(f"+{SHA_A} libs/a (v1.2-3-g1111111)")
        assert entry.path == "libs/a"
        assert entry.describe == "v1.2-3-g1111111"
        assert entry.change.kind is ChangeKind.NEW_COMMITS
        assert entry.change.sha == SHA_A

    def test_uninitialized_is_behind_index(self):
        entry = parse_status_line(f"-{SHA_B} vendor/lib")
        assert not entry.initialized
        assert entry.describe is None
        assert entry.change.kind is ChangeKind.BEHIND_INDEX

    def test_conflicted(self):
        entry = parse_status_line(f"U{'0' * 40} libs/a")
        assert entry.change.kind is ChangeKind.CONFLICTED

    def test_path_with_spaces(self):
        entry = parse_status_line(f" {SHA_A} third party/lib (heads/main)")
        assert entry.path == "third party/lib"

    def test_garbage_is_ignored(self):
        assert parse_status_line("") is None
        assert parse_status_line("fatal: not a git repository") is None


class TestParseStatusOutput:
    def test_keeps_order_and_drops_duplicates(self):
        output = "\n".join([
            f"+{SHA_A} libs/b (heads/main)",
            f" {SHA_B} libs/a (heads/main)",
            f"+{SHA_A} libs/b (heads/main)",
            "",
        ])
        entries = parse_status_output(output)
        assert [e.path for e in entries] == ["libs/b", "libs/a"]


class TestSubmoduleTree:
    def _tree(self):
        return SubmoduleTree.from_entries([
            SubmoduleEntry(" ", SHA_A, "libs/a"),
            SubmoduleEntry(" ", SHA_B, "libs/a/deps/grand"),
            SubmoduleEntry(" ", SHA_C, "libs/a/deps/grand/tiny"),
            SubmoduleEntry(" ", SHA_A, "libs/ab"),
        ])

    def test_parent_links(self):
        tree = self._tree()
        assert [n.parent for n in tree] == [None, 0, 1, None]
        assert tree.nodes[0].children == [1]
        assert tree.nodes[1].children == [2]

    def test_sibling_prefix_is_not_parent(self):
        tree = self._tree()
        assert tree.nodes[3].parent is None
        assert [n.path for n in tree.roots] == ["libs/a", "libs/ab"]

    def test_post_order_puts_children_first(self):
        order = [n.path for n in self._tree().post_order()]
        assert order == ["libs/ab", "libs/a/deps/grand/tiny", "libs/a/deps/grand", "libs/a"]

    def test_relative_to_parent(self):
        tree = self._tree()
        assert tree.relative_to_parent(tree.nodes[2]) == "tiny"
        assert tree.relative_to_parent(tree.nodes[0]) == "libs/a"

    def test_empty(self):
        tree = SubmoduleTree.from_entries([])
        assert len(tree) == 0
        assert tree.post_order() == []


class TestDeclaredSubmodules:
    def test_reads_gitmodules(self, tmp_path):
        (tmp_path / ".gitmodules").write_text(
            '[submodule "a"]\n\tpath = libs/a\n\turl = ../a.git\n'
            '[submodule "b"]\n\tpath = libs/b\n\turl = ../b.git\n'
        )
        assert declared_submodule_paths(tmp_path) == {"libs/a", "libs/b"}

    def test_missing_gitmodules(self, tmp_path):
        assert declared_submodule_paths(tmp_path) == set()
