"""Submodule traversal.

Initializes every level of submodules, syncs each one parent-first, then
walks the tree children-first so that nested pointer updates are committed
in each intermediate repository before its own pointer is looked at.
"""

from __future__ import annotations

import logging
from pathlib import Path

from superrepo_sync.errors import SyncError
from superrepo_sync.git.runner import command_error, git_output, run_git
from superrepo_sync.git.submodules import SubmoduleTree, submodule_status
from superrepo_sync.models import RepositoryHandle, SyncOutcome
from superrepo_sync.output import Reporter
from superrepo_sync.sync.reconciler import ReferenceReconciler
from superrepo_sync.sync.syncer import RepositorySyncer

logger = logging.getLogger(__name__)


def recorded_commit(parent_path: Path, sub_path: str) -> str | None:
    """Commit the parent's index records for a submodule path."""
    out = git_output(["ls-files", "--stage", "--", sub_path], parent_path)
    if not out:
        return None
    fields = out.splitlines()[0].split()
    if len(fields) < 2 or fields[0] != "160000":
        return None
    return fields[1]


def is_behind_index(sub_repo: Path, recorded: str) -> bool:
    """True when the submodule checkout is an ancestor of the recorded commit."""
    result = run_git(["merge-base", "--is-ancestor", "HEAD", recorded], sub_repo)
    return result.returncode == 0


class SubmoduleWalker:
    """Sync all submodules of a superrepo and reconcile nested levels."""

    def __init__(
        self,
        reporter: Reporter,
        syncer: RepositorySyncer,
        reconciler: ReferenceReconciler,
    ):
        self.reporter = reporter
        self.syncer = syncer
        self.reconciler = reconciler

    def initialize(self, handle: RepositoryHandle) -> list[tuple[RepositoryHandle, SyncOutcome]]:
        """Initialize submodules below ``handle``, one level at a time.

        Already-initialized submodules keep their checkout unless it is
        behind the commit recorded by their parent.

        Returns:
            (handle, outcome) pairs for submodules that could not be set up.
        """
        failures = []
        self._initialize_level(handle, handle.path, failures)
        return failures

    def _initialize_level(
        self,
        superrepo: RepositoryHandle,
        repo_path: Path,
        failures: list[tuple[RepositoryHandle, SyncOutcome]],
    ) -> None:
        try:
            entries = submodule_status(repo_path)
        except RuntimeError as exc:
            failures.append((
                RepositoryHandle.for_path(repo_path, superrepo if repo_path != superrepo.path else None),
                SyncOutcome.manual(SyncError(str(exc), repo_path)),
            ))
            return

        for entry in entries:
            sub_path = repo_path / entry.path
            if not entry.initialized:
                self.reporter.info(f"initializing submodule {entry.path}")
                result = run_git(["submodule", "update", "--init", "--", entry.path], repo_path)
                if result.returncode != 0:
                    error = SyncError(
                        f"Could not initialize submodule: {command_error(result)}",
                        sub_path,
                        commands=[
                            f"cd {repo_path}",
                            f"git submodule update --init -- {entry.path}",
                        ],
                    )
                    failures.append((RepositoryHandle.for_path(sub_path, superrepo), SyncOutcome.manual(error)))
                    continue
            elif entry.marker == "+":
                recorded = recorded_commit(repo_path, entry.path)
                if recorded and is_behind_index(sub_path, recorded):
                    self.reporter.info(f"updating {entry.path} to its recorded commit {recorded[:8]}")
                    result = run_git(["submodule", "update", "--", entry.path], repo_path)
                    if result.returncode != 0:
                        self.reporter.warn(
                            f"{entry.path}: could not update to recorded commit: {command_error(result)}"
                        )
            self._initialize_level(superrepo, sub_path, failures)

    def discover(self, handle: RepositoryHandle) -> tuple[SubmoduleTree, list[RepositoryHandle]]:
        """Build the submodule tree and one handle per node (same indices)."""
        tree = SubmoduleTree.from_entries(submodule_status(handle.path, recursive=True))
        handles: list[RepositoryHandle] = []
        for node in tree:
            parent = handle if node.parent is None else handles[node.parent]
            handles.append(RepositoryHandle.for_path(handle.path / node.path, parent))
        return tree, handles

    def walk(self, handle: RepositoryHandle) -> list[tuple[RepositoryHandle, SyncOutcome]]:
        """Initialize, sync and reconcile every submodule below ``handle``."""
        entries = self.initialize(handle)
        failed = {h.path for h, _ in entries}

        try:
            tree, handles = self.discover(handle)
        except RuntimeError as exc:
            entries.append((handle, SyncOutcome.manual(SyncError(str(exc), handle.path))))
            return entries

        if not len(tree):
            self.reporter.info(f"{handle.name}: no submodules")
            return entries

        for node, sub in zip(tree, handles):
            if sub.path in failed:
                continue
            if not node.entry.initialized:
                outcome = SyncOutcome.skipped("submodule is not initialized")
            else:
                outcome = self.syncer.sync(sub, is_superrepo=False)
            self.reporter.outcome(sub.name, outcome)
            entries.append((sub, outcome))
            if outcome.is_failure:
                failed.add(sub.path)

        for node in tree.post_order():
            if not node.children:
                continue
            sub = handles[node.index]
            if sub.path in failed:
                logger.debug("not reconciling %s, its sync failed", sub.name)
                continue
            logger.debug("reconciling nested references in %s", sub.name)
            result = self.reconciler.reconcile(sub)
            self.reporter.outcome(sub.name, result.outcome)
            if result.committed or result.outcome.is_failure or result.outcome.commands:
                entries.append((sub, result.outcome))

        return entries
