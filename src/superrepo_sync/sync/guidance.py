"""Remediation text for every blocked or failed condition.

Each builder returns a SyncError subclass whose message describes the
condition and whose commands can be pasted into a shell as-is.
"""

from __future__ import annotations

import shlex
from pathlib import Path

from superrepo_sync.errors import (
    CommitFailed,
    Diverged,
    DirtyWorkingTree,
    FastForwardFailed,
    FetchFailed,
    MergeConflictInSubmodule,
    NoUpstreamConfigured,
    PushRejected,
    SwitchBranchFailed,
)


def _cd(path: Path) -> str:
    return f"cd {shlex.quote(str(path))}"


def dirty_tree(path: Path, dirty: list[str], pointer_only: list[str]) -> DirtyWorkingTree:
    listing = "\n".join(f"  {p}" for p in dirty)
    message = f"Uncommitted changes in {path}:\n{listing}"
    if pointer_only:
        names = ", ".join(pointer_only)
        message += (
            f"\nOnly the recorded commit changed for: {names} "
            "(marked '+' by 'git submodule status'); "
            "committing those paths records the new submodule commits."
        )
    return DirtyWorkingTree(
        message,
        path,
        commands=[
            _cd(path),
            "git status",
            "git submodule status",
            "# keep the changes:",
            "git add -A && git commit -m '<describe your change>' && git push",
            "# or set them aside:",
            "git stash push --include-untracked",
        ],
    )


def no_upstream(path: Path, branch: str | None, remote: str) -> NoUpstreamConfigured:
    name = branch or "<branch>"
    return NoUpstreamConfigured(
        f"Branch '{name}' has no upstream tracking branch; it was not synced",
        path,
        commands=[
            _cd(path),
            f"git branch --set-upstream-to={remote}/{name} {name}",
            "# or publish it:",
            f"git push -u {remote} {name}",
        ],
    )


def fetch_failed(path: Path, reason: str) -> FetchFailed:
    return FetchFailed(
        f"Could not fetch remotes: {reason}",
        path,
        commands=[
            _cd(path),
            "git remote -v",
            "git fetch --all --prune --verbose",
        ],
    )


def fast_forward_failed(path: Path, upstream: str | None, reason: str) -> FastForwardFailed:
    target = upstream or "@{upstream}"
    return FastForwardFailed(
        f"Fast-forward pull refused ({reason}); local history no longer "
        f"matches {target}. Choose how to integrate the remote commits",
        path,
        commands=[
            _cd(path),
            f"git log --oneline --graph HEAD {target} -20",
            "# merge:",
            "git pull --no-ff",
            "# or rebase local commits on top:",
            "git pull --rebase",
        ],
    )


def push_rejected(path: Path, branch: str | None, reason: str) -> PushRejected:
    return PushRejected(
        f"Push of '{branch or 'HEAD'}' rejected ({reason}). Likely causes: "
        "no write permission, protected branch, connectivity problems, or "
        "the remote gained commits since the last fetch",
        path,
        commands=[
            _cd(path),
            "git remote -v",
            "git status -sb",
            "git fetch --all --prune",
            "git log --oneline HEAD..@{upstream}",
            "git push --verbose",
        ],
    )


def diverged(path: Path, upstream: str | None, ahead: int, behind: int) -> Diverged:
    target = upstream or "@{upstream}"
    return Diverged(
        f"Local branch is {ahead} commit(s) ahead of and {behind} commit(s) "
        f"behind {target}. Pick one of the options below",
        path,
        commands=[
            _cd(path),
            f"git log --oneline --left-right HEAD...{target}",
            "# 1. merge the remote commits:",
            f"git merge {target} && git push",
            "# 2. rebase local commits onto the remote:",
            f"git rebase {target} && git push",
            "# 3. overwrite the remote with local history:",
            "git push --force-with-lease",
        ],
    )


def switch_failed(path: Path, branch: str, reason: str) -> SwitchBranchFailed:
    return SwitchBranchFailed(
        f"HEAD is detached and switching to '{branch}' failed ({reason}); skipped",
        path,
        commands=[
            _cd(path),
            "git branch -a",
            f"git switch {branch}",
        ],
    )


def submodule_conflict(path: Path, conflicted: list[str]) -> MergeConflictInSubmodule:
    names = ", ".join(conflicted)
    return MergeConflictInSubmodule(
        f"Submodule pointer conflict in: {names}. Resolve it by choosing a commit",
        path,
        commands=[_cd(path), "git status"]
        + [f"git -C {shlex.quote(p)} log --oneline -5" for p in conflicted]
        + [f"git add {shlex.quote(p)}" for p in conflicted]
        + ["git commit"],
    )


def mixed_staged_changes(path: Path, staged: list[str], others: list[str]) -> CommitFailed:
    return CommitFailed(
        "Staged changes include files that are not submodule references ("
        + ", ".join(others)
        + "); commit them yourself with a descriptive message",
        path,
        commands=[
            _cd(path),
            "git diff --cached --stat",
            "git commit -m '<describe your change>'",
            "git push --recurse-submodules=on-demand",
        ],
    )


def commit_failed(path: Path, reason: str) -> CommitFailed:
    return CommitFailed(
        f"Could not commit submodule references: {reason}",
        path,
        commands=[_cd(path), "git diff --cached --stat", "git commit"],
    )


def declined_commit(path: Path, message: str) -> list[str]:
    return [
        _cd(path),
        "git diff --cached --submodule=log",
        f"git commit -m {shlex.quote(message)}",
        "git push --recurse-submodules=on-demand",
    ]
