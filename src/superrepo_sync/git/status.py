"""Working tree and ref state inspection."""

from __future__ import annotations

from pathlib import Path

from superrepo_sync.errors import NotARepository
from superrepo_sync.git.runner import git_output, run_git
from superrepo_sync.models import RepositoryHandle, RepositoryStatus


def _porcelain_paths(output: str) -> list[str]:
    """Extract paths from ``git status --porcelain -z`` output.

    Records are NUL-terminated and paths are never quoted. A rename or copy
    record is followed by one extra field holding the source path, which is
    skipped; the new path is returned.
    """
    paths = []
    records = iter(output.split("\0"))
    for record in records:
        if len(record) < 4:
            continue
        paths.append(record[3:])
        if record[0] in "RC":
            next(records, None)
    return paths


def dirty_paths(repo_path: Path | str) -> list[str]:
    """List every path that makes the working tree dirty.

    Covers staged and unstaged modifications, submodule pointer changes and
    untracked files that are not ignored.
    """
    result = run_git(
        ["status", "--porcelain", "-z", "--untracked-files=normal", "--ignore-submodules=none"],
        repo_path,
    )
    if result.returncode != 0:
        raise NotARepository(
            f"git status failed: {result.stderr.strip()}", repo_path,
        )
    return _porcelain_paths(result.stdout)


def current_branch(repo_path: Path | str) -> str | None:
    """Return the checked-out branch name, or None when HEAD is detached."""
    return git_output(["symbolic-ref", "--quiet", "--short", "HEAD"], repo_path) or None


def upstream_branch(repo_path: Path | str) -> str | None:
    """Return the upstream of the current branch (e.g. ``origin/main``)."""
    return git_output(
        ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}"],
        repo_path,
    ) or None


def ahead_behind(repo_path: Path | str) -> tuple[int | None, int | None]:
    """Count commits ahead of and behind the upstream.

    Returns (None, None) when the counts cannot be computed.
    """
    out = git_output(["rev-list", "--left-right", "--count", "HEAD...@{upstream}"], repo_path)
    if not out:
        return None, None
    parts = out.split()
    if len(parts) != 2:
        return None, None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None, None


def remote_default_branch(repo_path: Path | str, remote: str = "origin") -> str | None:
    """Return the branch the remote's HEAD points at, if known locally."""
    ref = git_output(
        ["symbolic-ref", "--quiet", "--short", f"refs/remotes/{remote}/HEAD"],
        repo_path,
    )
    if not ref:
        return None
    prefix = f"{remote}/"
    return ref[len(prefix):] if ref.startswith(prefix) else ref


def inspect_repository(handle: RepositoryHandle) -> RepositoryStatus:
    """Take a fresh status snapshot of one repository.

    Raises:
        NotARepository: If the handle's path is not a git working tree.
        CommandUnavailable: If git cannot be executed.
    """
    inside = git_output(["rev-parse", "--is-inside-work-tree"], handle.path)
    if inside != "true":
        raise NotARepository(
            f"{handle.name} is not a git working tree", handle.path,
            commands=[f"cd {handle.path}", "git status"],
        )

    paths = dirty_paths(handle.path)
    branch = current_branch(handle.path)
    upstream = upstream_branch(handle.path) if branch else None
    ahead, behind = ahead_behind(handle.path) if upstream else (None, None)

    return RepositoryStatus(
        current_branch=branch,
        is_detached=branch is None,
        is_clean=not paths,
        has_tracking_branch=upstream is not None,
        ahead_count=ahead,
        behind_count=behind,
        upstream=upstream,
        dirty_paths=tuple(paths),
    )
