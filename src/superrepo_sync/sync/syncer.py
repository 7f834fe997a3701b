"""Single-repository synchronization.

One call fetches, resolves a detached HEAD, inspects the repository,
decides an action and carries it out using only fast-forward pulls and
plain pushes. Every problem becomes an outcome with remediation commands.
"""

from __future__ import annotations

import logging

from superrepo_sync.errors import SyncError
from superrepo_sync.git.runner import command_error, repository_context, run_git
from superrepo_sync.git.status import inspect_repository, remote_default_branch
from superrepo_sync.git.submodules import declared_submodule_paths, submodule_status
from superrepo_sync.models import OutcomeKind, RepositoryHandle, RepositoryStatus, SyncOutcome
from superrepo_sync.output import Reporter
from superrepo_sync.sync import guidance
from superrepo_sync.sync.decision import Action, decide
from superrepo_sync.sync.reconciler import ReferenceReconciler

logger = logging.getLogger(__name__)


class RepositorySyncer:
    """Carry out the decided action for one repository."""

    def __init__(
        self,
        reporter: Reporter,
        reconciler: ReferenceReconciler,
        remote: str = "origin",
        fallback_branch: str = "main",
    ):
        self.reporter = reporter
        self.reconciler = reconciler
        self.remote = remote
        self.fallback_branch = fallback_branch

    def sync(self, handle: RepositoryHandle, is_superrepo: bool | None = None) -> SyncOutcome:
        """Sync one repository; never raises SyncError."""
        if is_superrepo is None:
            is_superrepo = handle.is_superrepo
        with repository_context(handle.path):
            try:
                return self._sync(handle, is_superrepo)
            except SyncError as exc:
                return SyncOutcome.manual(exc)

    def _sync(self, handle: RepositoryHandle, is_superrepo: bool) -> SyncOutcome:
        self.reporter.info(f"{handle.name}: fetching")
        self.fetch(handle)

        status = inspect_repository(handle)
        if status.is_detached:
            switched = self._attach_head(handle)
            if switched is not None:
                return switched
            status = inspect_repository(handle)

        action = decide(status)
        logger.debug("%s: %s -> %s", handle.name, status, action.value)

        if action is Action.BLOCKED_DIRTY and is_superrepo:
            pointer_paths = set(declared_submodule_paths(handle.path))
            if pointer_paths and set(status.dirty_paths) <= pointer_paths:
                outcome = self._reconcile_dirty_superrepo(handle, status)
                if outcome is not None:
                    return outcome
                status = inspect_repository(handle)
                action = decide(status)

        return self.execute(handle, status, action)

    def fetch(self, handle: RepositoryHandle) -> None:
        result = run_git(["fetch", "--all", "--prune"], handle.path)
        if result.returncode != 0:
            raise guidance.fetch_failed(handle.path, command_error(result))

    def _attach_head(self, handle: RepositoryHandle) -> SyncOutcome | None:
        """Switch a detached HEAD to the default branch.

        Returns a Skipped outcome when the switch fails, None on success.
        """
        branch = remote_default_branch(handle.path, self.remote) or self.fallback_branch
        self.reporter.info(f"{handle.name}: HEAD is detached, switching to {branch}")
        result = run_git(["switch", branch], handle.path)
        if result.returncode == 0:
            return None
        error = guidance.switch_failed(handle.path, branch, command_error(result))
        self.reporter.warn(f"{handle.name}: {error.message}")
        return SyncOutcome.skipped(error.message, error.commands)

    def _reconcile_dirty_superrepo(
        self, handle: RepositoryHandle, status: RepositoryStatus,
    ) -> SyncOutcome | None:
        """Let the reconciler handle a superrepo dirty only in submodule paths.

        Returns the final outcome when the reconciler pushed or stopped
        before committing (declined, no upstream), or None when the
        repository should be inspected again.
        """
        self.reporter.info(
            f"{handle.name}: only submodule references changed "
            f"({', '.join(status.dirty_paths)}), reconciling"
        )
        result = self.reconciler.reconcile(handle)
        if result.outcome.is_failure and result.outcome.error is not None:
            raise result.outcome.error
        if result.pushed:
            return SyncOutcome.synced("submodule references reconciled")
        if result.outcome.kind is OutcomeKind.SKIPPED and not result.committed:
            return result.outcome
        return None

    def execute(
        self, handle: RepositoryHandle, status: RepositoryStatus, action: Action,
    ) -> SyncOutcome:
        path = handle.path

        if action is Action.SKIP:
            return SyncOutcome.synced("up to date")

        if action is Action.BLOCKED_DIRTY:
            raise guidance.dirty_tree(path, list(status.dirty_paths), self._pointer_only(handle))

        if action is Action.BLOCKED_NO_UPSTREAM:
            error = guidance.no_upstream(path, status.current_branch, self.remote)
            return SyncOutcome.skipped(error.message, error.commands)

        if action is Action.BLOCKED_DIVERGED:
            raise guidance.diverged(path, status.upstream, status.ahead_count, status.behind_count)

        if action is Action.PULL:
            self.reporter.info(
                f"{handle.name}: pulling {status.behind_count} commit(s) from {status.upstream}"
            )
            result = run_git(["pull", "--ff-only"], path)
            if result.returncode != 0:
                raise guidance.fast_forward_failed(path, status.upstream, command_error(result))
            return SyncOutcome.synced(f"fast-forwarded {status.behind_count} commit(s)")

        if action is Action.PUSH:
            self.reporter.info(
                f"{handle.name}: pushing {status.ahead_count} commit(s) to {status.upstream}"
            )
            result = run_git(["push"], path)
            if result.returncode != 0:
                raise guidance.push_rejected(path, status.current_branch, command_error(result))
            return SyncOutcome.synced(f"pushed {status.ahead_count} commit(s)")

        raise ValueError(f"Unhandled action: {action}")

    def _pointer_only(self, handle: RepositoryHandle) -> list[str]:
        """Submodules whose recorded commit alone differs from the checkout."""
        try:
            entries = submodule_status(handle.path)
        except RuntimeError:
            return []
        return [e.path for e in entries if e.marker == "+"]
