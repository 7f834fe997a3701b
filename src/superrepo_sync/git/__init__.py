"""Git module: status inspection and submodule parsing on top of the git CLI."""

from superrepo_sync.git.runner import repository_context, repository_root, run_git
from superrepo_sync.git.status import inspect_repository
from superrepo_sync.git.submodules import SubmoduleTree, parse_status_line, submodule_status

__all__ = [
    "repository_context",
    "repository_root",
    "run_git",
    "inspect_repository",
    "SubmoduleTree",
    "parse_status_line",
    "submodule_status",
]
