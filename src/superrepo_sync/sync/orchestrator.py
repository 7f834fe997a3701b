"""Top-level run: superrepo, then submodules, then top-level references."""

from __future__ import annotations

import logging
from pathlib import Path

from superrepo_sync.config import SyncSettings
from superrepo_sync.errors import SyncError
from superrepo_sync.git.runner import repository_context, repository_root
from superrepo_sync.git.status import inspect_repository
from superrepo_sync.models import RepositoryHandle, SyncOutcome, SyncReport
from superrepo_sync.output import Reporter
from superrepo_sync.sync.decision import Action, decide
from superrepo_sync.sync.reconciler import Confirm, ReferenceReconciler
from superrepo_sync.sync.syncer import RepositorySyncer
from superrepo_sync.sync.walker import SubmoduleWalker

logger = logging.getLogger(__name__)

_CHECK_OK = {Action.SKIP, Action.PULL, Action.PUSH, Action.BLOCKED_NO_UPSTREAM}


class Orchestrator:
    """Wire the components together for one superrepo.

    Args:
        root: Superrepo working tree. Must already be a repository root.
        settings: Resolved settings.
        reporter: Output sink.
        confirm: Confirmation callable handed to the reconciler.
        dry_run: Inspect and plan only; no fetch, pull, push or commit.
    """

    def __init__(
        self,
        root: Path,
        settings: SyncSettings | None = None,
        reporter: Reporter | None = None,
        confirm: Confirm | None = None,
        dry_run: bool = False,
    ):
        self.settings = settings or SyncSettings()
        self.reporter = reporter or Reporter()
        self.superrepo = RepositoryHandle.for_path(root)
        self.dry_run = dry_run
        self.reconciler = ReferenceReconciler(
            self.reporter,
            confirm=confirm,
            confirm_default=self.settings.confirm_default,
            assume_yes=self.settings.assume_yes,
            dry_run=dry_run,
            remote=self.settings.remote,
        )
        self.syncer = RepositorySyncer(
            self.reporter,
            self.reconciler,
            remote=self.settings.remote,
            fallback_branch=self.settings.fallback_branch,
        )
        self.walker = SubmoduleWalker(self.reporter, self.syncer, self.reconciler)

    @classmethod
    def from_cwd(cls, **kwargs) -> Orchestrator:
        """Build an orchestrator for the repository containing the cwd.

        Raises:
            NotARepository: If the cwd is not inside a git working tree.
        """
        return cls(repository_root(), **kwargs)

    def run(self) -> SyncReport:
        if self.dry_run:
            return self.check()

        report = SyncReport()
        with repository_context(self.superrepo.path):
            outcome = self.syncer.sync(self.superrepo, is_superrepo=True)
            self.reporter.outcome(self.superrepo.name, outcome)
            report.add(self.superrepo, outcome)

            report.extend(self.walker.walk(self.superrepo))

            result = self.reconciler.reconcile(self.superrepo)
            self.reporter.outcome(self.superrepo.name, result.outcome)
            if result.committed or result.outcome.is_failure or result.outcome.commands:
                report.add(self.superrepo, result.outcome)

        self.reporter.summary(report)
        return report

    def check(self) -> SyncReport:
        """Report the planned action for every initialized repository."""
        report = SyncReport()
        with repository_context(self.superrepo.path):
            try:
                tree, handles = self.walker.discover(self.superrepo)
            except RuntimeError as exc:
                outcome = SyncOutcome.manual(SyncError(str(exc), self.superrepo.path))
                self.reporter.outcome(self.superrepo.name, outcome)
                report.add(self.superrepo, outcome)
                self.reporter.summary(report)
                return report

            targets = [self.superrepo] + [
                h for node, h in zip(tree, handles) if node.entry.initialized
            ]
            for handle in targets:
                report.add(handle, self._plan(handle))

            parents = [
                handles[node.index] for node in tree.post_order()
                if node.children and node.entry.initialized
            ]
            for handle in parents + [self.superrepo]:
                result = self.reconciler.reconcile(handle)
                if result.outcome.is_failure:
                    self.reporter.outcome(handle.name, result.outcome)
                    report.add(handle, result.outcome)

        self.reporter.summary(report)
        return report

    def _plan(self, handle: RepositoryHandle) -> SyncOutcome:
        try:
            status = inspect_repository(handle)
        except SyncError as exc:
            return SyncOutcome.manual(exc)

        if status.is_detached:
            message = "HEAD detached, would switch to the default branch"
            self.reporter.info(f"{handle.name}: {message}")
            return SyncOutcome.skipped(message)

        action = decide(status)
        branch = status.current_branch
        if status.has_tracking_branch:
            counts = f"+{status.ahead_count}/-{status.behind_count} vs {status.upstream}"
        else:
            counts = "no upstream"
        message = f"{branch}, {counts}: {action.value}"
        self.reporter.info(f"{handle.name}: {message}")

        if action in _CHECK_OK:
            return SyncOutcome.skipped(message)
        return SyncOutcome.failed(message)
