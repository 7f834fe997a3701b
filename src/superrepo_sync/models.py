"""Data model shared by the inspection, decision and sync layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from superrepo_sync.errors import SyncError


@dataclass(frozen=True)
class RepositoryHandle:
    """One working tree taking part in a sync run."""
    path: Path
    name: str
    parent: RepositoryHandle | None = None

    @classmethod
    def for_path(cls, path: Path | str, parent: RepositoryHandle | None = None) -> RepositoryHandle:
        resolved = Path(path).resolve()
        if parent is None:
            name = resolved.name
        else:
            name = resolved.relative_to(cls.root_of(parent).path).as_posix()
        return cls(path=resolved, name=name, parent=parent)

    @staticmethod
    def root_of(handle: RepositoryHandle) -> RepositoryHandle:
        while handle.parent is not None:
            handle = handle.parent
        return handle

    @property
    def is_superrepo(self) -> bool:
        return self.parent is None


@dataclass(frozen=True)
class RepositoryStatus:
    """Point-in-time snapshot of a repository's branch and tree state.

    ``ahead_count`` and ``behind_count`` are None when no upstream is
    configured; None means unknown, not zero.
    """
    current_branch: str | None
    is_detached: bool
    is_clean: bool
    has_tracking_branch: bool
    ahead_count: int | None = None
    behind_count: int | None = None
    upstream: str | None = None
    dirty_paths: tuple[str, ...] = ()


class OutcomeKind(Enum):
    SKIPPED = "skipped"
    SYNCED = "synced"
    FAILED = "failed"
    NEEDS_MANUAL_INTERVENTION = "needs-manual-intervention"


@dataclass(frozen=True)
class SyncOutcome:
    """Result of attempting to sync or reconcile one repository."""
    kind: OutcomeKind
    message: str = ""
    commands: tuple[str, ...] = ()
    error: SyncError | None = None

    @property
    def is_failure(self) -> bool:
        return self.kind in (OutcomeKind.FAILED, OutcomeKind.NEEDS_MANUAL_INTERVENTION)

    @classmethod
    def skipped(cls, message: str = "", commands: list[str] | None = None) -> SyncOutcome:
        return cls(OutcomeKind.SKIPPED, message, tuple(commands or ()))

    @classmethod
    def synced(cls, message: str = "") -> SyncOutcome:
        return cls(OutcomeKind.SYNCED, message)

    @classmethod
    def failed(cls, reason: str) -> SyncOutcome:
        return cls(OutcomeKind.FAILED, reason)

    @classmethod
    def manual(cls, error: SyncError) -> SyncOutcome:
        """Convert an error into a NeedsManualIntervention outcome."""
        return cls(
            OutcomeKind.NEEDS_MANUAL_INTERVENTION,
            error.message,
            tuple(error.commands),
            error,
        )


class ChangeKind(Enum):
    NEW_COMMITS = "new-commits"
    BEHIND_INDEX = "behind-index"
    CONFLICTED = "conflicted"


@dataclass(frozen=True)
class SubmodulePointerChange:
    """A submodule whose checkout no longer matches its recorded commit.

    ``sha`` is the checked-out commit, or the recorded one when the
    submodule is not initialized.
    """
    path: str
    kind: ChangeKind
    sha: str = ""


@dataclass
class SyncReport:
    """Every repository touched during a run, with its outcome."""
    entries: list[tuple[RepositoryHandle, SyncOutcome]] = field(default_factory=list)

    def add(self, handle: RepositoryHandle, outcome: SyncOutcome) -> None:
        self.entries.append((handle, outcome))

    def extend(self, entries: list[tuple[RepositoryHandle, SyncOutcome]]) -> None:
        self.entries.extend(entries)

    @property
    def failures(self) -> list[tuple[RepositoryHandle, SyncOutcome]]:
        return [(h, o) for h, o in self.entries if o.is_failure]

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for _, o in self.entries if o.kind is kind)
