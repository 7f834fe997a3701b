"""Shared test fixtures for superrepo-sync.

Every test runs against throwaway repositories under ``tmp_path`` with an
isolated git configuration, so nothing from the developer's setup leaks in.
"""

import io
import itertools
import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest
from rich.console import Console

from superrepo_sync.output import Reporter

GITCONFIG = """\
[user]
\tname = Test User
\temail = test@example.com
[init]
\tdefaultBranch = main
[protocol "file"]
\tallow = always
[advice]
\tdetachedHead = false
[pull]
\tff = only
"""


@pytest.fixture(autouse=True)
def git_env(tmp_path, monkeypatch):
    """Point git at an empty home with a minimal global config."""
    home = tmp_path / "home"
    home.mkdir()
    config = home / ".gitconfig"
    config.write_text(GITCONFIG)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    for var in ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE"):
        monkeypatch.delenv(var, raising=False)
    for var in ("SUPERREPO_SYNC_REMOTE", "SUPERREPO_SYNC_FALLBACK_BRANCH", "SUPERREPO_SYNC_ASSUME_YES"):
        monkeypatch.delenv(var, raising=False)
    return home


class GitRepos:
    """Builds bare remotes, clones and commits inside one directory."""

    def __init__(self, root: Path):
        self.root = root
        self._ids = itertools.count()

    def git(self, cwd: Path, *args: str) -> str:
        result = subprocess.run(
            ["git", *args], cwd=cwd, capture_output=True, text=True, encoding="utf-8",
        )
        if result.returncode != 0:
            raise AssertionError(f"git {' '.join(args)} failed in {cwd}: {result.stderr}")
        return result.stdout.strip()

    def remote(self, name: str, files: dict[str, str] | None = None) -> Path:
        """Create a bare repository with one commit on main."""
        bare = self.root / "remotes" / f"{name}.git"
        bare.parent.mkdir(parents=True, exist_ok=True)
        self.git(self.root, "init", "--bare", str(bare))
        seed = self.clone(bare, f"seed-{name}")
        for filename, content in (files or {"README.md": f"# {name}\n"}).items():
            (seed / filename).write_text(content)
        self.git(seed, "add", ".")
        self.git(seed, "commit", "-m", f"initial {name}")
        self.git(seed, "push", "origin", "main")
        return bare

    def clone(self, remote: Path, name: str) -> Path:
        dest = self.root / name
        self.git(self.root, "clone", str(remote), str(dest))
        return dest

    def commit(self, repo: Path, filename: str | None = None, message: str | None = None) -> str:
        """Write a new file and commit it; returns the new HEAD."""
        n = next(self._ids)
        filename = filename or f"file-{n}.txt"
        path = repo / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"change {n}\n")
        self.git(repo, "add", filename)
        self.git(repo, "commit", "-m", message or f"change {n}")
        return self.head(repo)

    def push_from_elsewhere(self, remote: Path, count: int = 1) -> str:
        """Simulate a collaborator pushing ``count`` commits to ``remote``."""
        other = self.clone(remote, f"collaborator-{next(self._ids)}")
        for _ in range(count):
            self.commit(other)
        self.git(other, "push")
        return self.head(other)

    def add_submodule(self, repo: Path, remote: Path, path: str) -> None:
        self.git(repo, "submodule", "add", str(remote), path)

    def head(self, repo: Path, ref: str = "HEAD") -> str:
        return self.git(repo, "rev-parse", ref)

    def commit_count(self, repo: Path, ref: str = "HEAD") -> int:
        return int(self.git(repo, "rev-list", "--count", ref))


@pytest.fixture
def repos(tmp_path):
    root = tmp_path / "repos"
    root.mkdir()
    return GitRepos(root)


@pytest.fixture
def workrepo(repos):
    """A clone of a single remote, tracking origin/main."""
    remote = repos.remote("app")
    work = repos.clone(remote, "work")
    return SimpleNamespace(work=work, remote=remote)


@pytest.fixture
def superrepo(repos):
    """A superrepo remote with two submodules, cloned without submodules."""
    lib_a = repos.remote("lib_a")
    lib_b = repos.remote("lib_b")
    remote = repos.remote("super")
    seed = repos.clone(remote, "super-seed")
    repos.add_submodule(seed, lib_a, "libs/a")
    repos.add_submodule(seed, lib_b, "libs/b")
    repos.git(seed, "commit", "-m", "add submodules")
    repos.git(seed, "push")
    work = repos.clone(remote, "super-work")
    return SimpleNamespace(work=work, remote=remote, lib_a=lib_a, lib_b=lib_b)


@pytest.fixture
def accented_submodule(superrepo, repos):
    """Superrepo with a submodule at ``libs/café`` one pushed commit past its pointer."""
    work = superrepo.work
    path = "libs/café"
    repos.add_submodule(work, superrepo.lib_a, path)
    repos.git(work, "commit", "-m", "add café")
    repos.git(work, "push")
    sub = work / path
    repos.git(sub, "switch", "main")
    repos.commit(sub)
    repos.git(sub, "push")
    return SimpleNamespace(work=work, remote=superrepo.remote, path=path, sub=sub)


@pytest.fixture
def nested_superrepo(repos):
    """Superrepo -> libs/a -> deps/grand, plus libs/b."""
    grand = repos.remote("grand")
    lib_a = repos.remote("lib_a")
    lib_b = repos.remote("lib_b")

    seed_a = repos.clone(lib_a, "lib_a-seed")
    repos.add_submodule(seed_a, grand, "deps/grand")
    repos.git(seed_a, "commit", "-m", "add grand")
    repos.git(seed_a, "push")

    remote = repos.remote("super")
    seed = repos.clone(remote, "super-seed")
    repos.add_submodule(seed, lib_a, "libs/a")
    repos.add_submodule(seed, lib_b, "libs/b")
    repos.git(seed, "commit", "-m", "add submodules")
    repos.git(seed, "push")

    work = repos.clone(remote, "super-work")
    return SimpleNamespace(
        work=work, remote=remote, lib_a=lib_a, lib_b=lib_b, grand=grand,
    )


@pytest.fixture
def reporter():
    out = Console(file=io.StringIO(), width=400, highlight=False)
    err = Console(file=io.StringIO(), width=400, highlight=False)
    return Reporter(out=out, err=err)
