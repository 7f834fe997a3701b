"""Error taxonomy for repository synchronization.

Every error names the affected repository and carries the commands an
operator can paste to resolve it. Errors are converted into outcomes at
the repository level; the tool never recovers from them destructively.
"""

from __future__ import annotations

from pathlib import Path


class SyncError(Exception):
    """Base class for synchronization failures."""

    condition = "synchronization failed"

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        commands: list[str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = Path(path).resolve() if path else None
        self.commands = list(commands or [])

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} ({self.path})"
        return self.message


class NotARepository(SyncError):
    condition = "not a git repository"


class CommandUnavailable(SyncError):
    condition = "git executable not available"


class FetchFailed(SyncError):
    condition = "fetch from remotes failed"


class DirtyWorkingTree(SyncError):
    condition = "working tree has uncommitted changes"


class NoUpstreamConfigured(SyncError):
    condition = "no upstream tracking branch"


class FastForwardFailed(SyncError):
    condition = "fast-forward pull refused"


class PushRejected(SyncError):
    condition = "push rejected"


class Diverged(SyncError):
    condition = "local and remote histories have diverged"


class MergeConflictInSubmodule(SyncError):
    condition = "submodule has unresolved merge conflicts"


class CommitFailed(SyncError):
    condition = "commit failed"


class SwitchBranchFailed(SyncError):
    condition = "could not switch branch"
