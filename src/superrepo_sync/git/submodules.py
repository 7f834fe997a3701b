"""Submodule status parsing, the declared-submodule registry and the
submodule tree.

``git submodule status`` prints one line per submodule:

    " <sha> <path> (<describe>)"   checkout matches the recorded commit
    "+<sha> <path> (<describe>)"   checkout differs from the recorded commit
    "-<sha> <path>"                not initialized
    "U<sha> <path>"                merge conflicts in the recorded pointer

Lines are converted into SubmoduleEntry values as soon as they are read.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from superrepo_sync.git.runner import command_error, run_git
from superrepo_sync.models import ChangeKind, SubmodulePointerChange

_STATUS_LINE = re.compile(
    r"^(?P<marker>[ +\-U])(?P<sha>[0-9a-fA-F]+) (?P<path>.+?)(?: \((?P<describe>[^()]*)\))?$"
)

_MARKER_KINDS = {
    "+": ChangeKind.NEW_COMMITS,
    "-": ChangeKind.BEHIND_INDEX,
    "U": ChangeKind.CONFLICTED,
}


@dataclass(frozen=True)
class SubmoduleEntry:
    """One parsed ``git submodule status`` line."""
    marker: str
    sha: str
    path: str
    describe: str | None = None

    @property
    def initialized(self) -> bool:
        return self.marker != "-"

    @property
    def change(self) -> SubmodulePointerChange | None:
        kind = _MARKER_KINDS.get(self.marker)
        if kind is None:
            return None
        return SubmodulePointerChange(path=self.path, kind=kind, sha=self.sha)


def parse_status_line(line: str) -> SubmoduleEntry | None:
    """Parse one status line; returns None for blank or unrecognized lines."""
    match = _STATUS_LINE.match(line.rstrip("\n"))
    if not match:
        return None
    return SubmoduleEntry(
        marker=match.group("marker"),
        sha=match.group("sha"),
        path=match.group("path"),
        describe=match.group("describe"),
    )


def parse_status_output(output: str) -> list[SubmoduleEntry]:
    """Parse full ``git submodule status`` output, dropping duplicate paths."""
    entries = []
    seen = set()
    for line in output.splitlines():
        entry = parse_status_line(line)
        if entry is None or entry.path in seen:
            continue
        seen.add(entry.path)
        entries.append(entry)
    return entries


def submodule_status(repo_path: Path | str, recursive: bool = False) -> list[SubmoduleEntry]:
    """Run ``git submodule status`` in a repository and parse it.

    Raises:
        RuntimeError: If git reports an error.
    """
    args = ["submodule", "status"]
    if recursive:
        args.append("--recursive")
    result = run_git(args, repo_path)
    if result.returncode != 0:
        raise RuntimeError(f"git submodule status failed in {repo_path}: {command_error(result)}")
    return parse_status_output(result.stdout)


def declared_submodule_paths(repo_path: Path | str) -> set[str]:
    """Read the submodule paths declared in a repository's .gitmodules."""
    if not (Path(repo_path) / ".gitmodules").exists():
        return set()
    result = run_git(
        ["config", "--file", ".gitmodules", "--get-regexp", r"^submodule\..*\.path$"],
        repo_path,
    )
    if result.returncode != 0:
        return set()
    paths = set()
    for line in result.stdout.splitlines():
        _, _, value = line.partition(" ")
        if value.strip():
            paths.add(value.strip())
    return paths


# ── Submodule tree ───────────────────────────────────────────────────


@dataclass
class SubmoduleNode:
    """A submodule in the tree; ``path`` is relative to the superrepo."""
    index: int
    entry: SubmoduleEntry
    parent: int | None = None
    children: list[int] = field(default_factory=list)

    @property
    def path(self) -> str:
        return self.entry.path


@dataclass
class SubmoduleTree:
    """Arena of submodule nodes in git's traversal order (parent first)."""
    nodes: list[SubmoduleNode] = field(default_factory=list)

    @classmethod
    def from_entries(cls, entries: list[SubmoduleEntry]) -> SubmoduleTree:
        """Build the tree from recursive status entries.

        A node's parent is the nearest earlier entry whose path is a
        directory prefix of the node's path.
        """
        tree = cls()
        for entry in entries:
            parent = None
            for candidate in reversed(tree.nodes):
                if entry.path.startswith(candidate.path + "/"):
                    parent = candidate.index
                    break
            node = SubmoduleNode(index=len(tree.nodes), entry=entry, parent=parent)
            tree.nodes.append(node)
            if parent is not None:
                tree.nodes[parent].children.append(node.index)
        return tree

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    @property
    def roots(self) -> list[SubmoduleNode]:
        return [n for n in self.nodes if n.parent is None]

    def post_order(self) -> list[SubmoduleNode]:
        """Children before parents; siblings in reverse traversal order."""
        ordered: list[SubmoduleNode] = []

        def visit(node: SubmoduleNode) -> None:
            for child in reversed(node.children):
                visit(self.nodes[child])
            ordered.append(node)

        for root in reversed(self.roots):
            visit(root)
        return ordered

    def relative_to_parent(self, node: SubmoduleNode) -> str:
        """Path of ``node`` relative to the repository that contains it."""
        if node.parent is None:
            return node.path
        return node.path[len(self.nodes[node.parent].path) + 1:]
