"""Reference reconciliation: record submodule checkouts in the parent.

After submodules move, the parent repository still records their old
commits. The reconciler stages the new pointers and, when the staged
change consists of nothing but submodule references, commits and pushes
it after confirmation. Anything else is left to the operator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from superrepo_sync.errors import SyncError
from superrepo_sync.git.runner import command_error, repository_context, run_git
from superrepo_sync.git.status import current_branch, upstream_branch
from superrepo_sync.git.submodules import (
    SubmoduleTree,
    declared_submodule_paths,
    submodule_status,
)
from superrepo_sync.models import (
    ChangeKind,
    RepositoryHandle,
    SubmodulePointerChange,
    SyncOutcome,
)
from superrepo_sync.output import Reporter
from superrepo_sync.sync import guidance

logger = logging.getLogger(__name__)

Confirm = Callable[[str, bool], bool]


@dataclass
class ReconcileResult:
    repository: RepositoryHandle
    outcome: SyncOutcome = field(default_factory=SyncOutcome.skipped)
    changes: list[SubmodulePointerChange] = field(default_factory=list)
    staged: list[str] = field(default_factory=list)
    committed: bool = False
    pushed: bool = False


def commit_message(paths: list[str]) -> str:
    """Commit message naming every updated submodule path."""
    lines = [f"chore: update submodule references ({len(paths)} updated)", ""]
    lines += [f"- {p}" for p in paths]
    return "\n".join(lines) + "\n"


def staged_paths(repo_path) -> list[str]:
    """Staged paths, unquoted (``-z`` output keeps non-ASCII names as-is)."""
    result = run_git(["diff", "--cached", "--name-only", "-z"], repo_path)
    if result.returncode != 0:
        raise SyncError(f"Could not read staged changes: {command_error(result)}", repo_path)
    return [p for p in result.stdout.split("\0") if p]


class ReferenceReconciler:
    """Stage, commit and push submodule pointer updates for one repository.

    Args:
        reporter: Output sink.
        confirm: Callable asked before committing; receives the question and
            the default answer. None means "use the default answer".
        confirm_default: Answer used on empty input or when no prompt is shown.
        assume_yes: Skip the question and proceed.
        dry_run: Report what would be staged without touching the index.
        remote: Remote named in the guidance for branches without upstream.
    """

    def __init__(
        self,
        reporter: Reporter,
        confirm: Confirm | None = None,
        confirm_default: bool = True,
        assume_yes: bool = False,
        dry_run: bool = False,
        remote: str = "origin",
    ):
        self.reporter = reporter
        self.confirm = confirm
        self.confirm_default = confirm_default
        self.assume_yes = assume_yes
        self.dry_run = dry_run
        self.remote = remote

    def reconcile(self, handle: RepositoryHandle) -> ReconcileResult:
        result = ReconcileResult(repository=handle)
        with repository_context(handle.path):
            try:
                self._reconcile(handle, result)
            except SyncError as exc:
                result.outcome = SyncOutcome.manual(exc)
            except RuntimeError as exc:
                result.outcome = SyncOutcome.manual(SyncError(str(exc), handle.path))
        return result

    def _confirmed(self, question: str) -> bool:
        if self.assume_yes:
            return True
        if self.confirm is None:
            return self.confirm_default
        return self.confirm(question, self.confirm_default)

    def _reconcile(self, handle: RepositoryHandle, result: ReconcileResult) -> None:
        entries = submodule_status(handle.path, recursive=True)
        tree = SubmoduleTree.from_entries(entries)
        direct = {node.path for node in tree.roots}
        result.changes = [e.change for e in entries if e.change is not None]

        conflicted = [c.path for c in result.changes if c.kind is ChangeKind.CONFLICTED]
        if conflicted:
            raise guidance.submodule_conflict(handle.path, conflicted)

        for change in result.changes:
            if change.kind is ChangeKind.BEHIND_INDEX:
                self.reporter.warn(
                    f"{handle.name}: submodule {change.path} records commit "
                    f"{change.sha[:8]} that is not checked out; left as is"
                )
            elif change.path not in direct:
                logger.debug("%s: %s belongs to a nested level", handle.name, change.path)
            elif self.dry_run:
                self.reporter.info(f"{handle.name}: would stage {change.path}")
            else:
                added = run_git(["add", "--", change.path], handle.path)
                if added.returncode != 0:
                    raise guidance.commit_failed(handle.path, command_error(added))
                logger.debug("%s: staged %s", handle.name, change.path)

        if self.dry_run:
            result.outcome = SyncOutcome.skipped("check mode, nothing staged")
            return

        result.staged = staged_paths(handle.path)
        if not result.staged:
            result.outcome = SyncOutcome.synced("submodule references up to date, nothing to commit")
            return

        declared = declared_submodule_paths(handle.path)
        others = [p for p in result.staged if p not in declared]
        if others:
            raise guidance.mixed_staged_changes(handle.path, result.staged, others)

        message = commit_message(result.staged)

        # commit only when the push has a target
        if upstream_branch(handle.path) is None:
            error = guidance.no_upstream(handle.path, current_branch(handle.path), self.remote)
            result.outcome = SyncOutcome.skipped(
                f"submodule references staged but not committed: {error.message}",
                error.commands + guidance.declined_commit(handle.path, message)[1:],
            )
            return

        question = (
            f"Commit and push {len(result.staged)} updated submodule "
            f"reference(s) in {handle.name}?"
        )
        if not self._confirmed(question):
            result.outcome = SyncOutcome.skipped(
                "submodule references staged but not committed",
                guidance.declined_commit(handle.path, message),
            )
            return

        committed = run_git(["commit", "-m", message], handle.path)
        if committed.returncode != 0:
            raise guidance.commit_failed(handle.path, command_error(committed))
        result.committed = True
        self.reporter.info(
            f"{handle.name}: committed references for {', '.join(result.staged)}"
        )

        fetched = run_git(["fetch", "--all", "--prune"], handle.path)
        if fetched.returncode != 0:
            raise guidance.fetch_failed(handle.path, command_error(fetched))

        pushed = run_git(["push", "--recurse-submodules=on-demand"], handle.path)
        if pushed.returncode != 0:
            raise guidance.push_rejected(
                handle.path, current_branch(handle.path), command_error(pushed),
            )
        result.pushed = True
        result.outcome = SyncOutcome.synced(
            f"committed and pushed {len(result.staged)} submodule reference(s)"
        )
