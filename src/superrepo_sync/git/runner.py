"""Thin subprocess wrapper around the git executable."""

from __future__ import annotations

import logging
import os
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from superrepo_sync.errors import CommandUnavailable, NotARepository

logger = logging.getLogger(__name__)


def run_git(args: list[str], cwd: Path | str) -> subprocess.CompletedProcess:
    """Run a git command and return the result.

    Non-zero exit codes are returned to the caller, not raised. A missing
    git executable raises CommandUnavailable.
    """
    logger.debug("git %s (in %s)", " ".join(args), cwd)
    try:
        result = subprocess.run(
            ["git"] + args,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError as exc:
        raise CommandUnavailable(f"git could not be executed: {exc}", cwd) from exc
    if result.returncode != 0:
        logger.debug("git %s exited %d: %s", args[0], result.returncode, result.stderr.strip())
    return result


def git_output(args: list[str], cwd: Path | str) -> str | None:
    """Return stripped stdout of a git command, or None if it failed."""
    result = run_git(args, cwd)
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def command_error(result: subprocess.CompletedProcess) -> str:
    """Best single-line description of why a git command failed."""
    text = (result.stderr or result.stdout or "").strip()
    if not text:
        return f"exit status {result.returncode}"
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    errors = [line for line in lines if line.lower().startswith(("error:", "fatal:"))]
    return (errors or lines)[-1]


def repository_root(path: Path | str | None = None) -> Path:
    """Return the top of the working tree containing ``path``.

    Raises:
        NotARepository: If ``path`` is not inside a git working tree.
    """
    start = Path(path) if path else Path.cwd()
    top = git_output(["rev-parse", "--show-toplevel"], start)
    if not top:
        raise NotARepository(
            "Run this command from inside a git repository",
            start,
            commands=["git rev-parse --show-toplevel"],
        )
    return Path(top).resolve()


@contextmanager
def repository_context(path: Path | str) -> Iterator[Path]:
    """Enter a repository directory for the duration of the block.

    The previous working directory is restored on every exit path,
    including exceptions raised inside the block.
    """
    previous = Path.cwd()
    target = Path(path).resolve()
    os.chdir(target)
    try:
        yield target
    finally:
        os.chdir(previous)
