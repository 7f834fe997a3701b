"""Sync CLI command."""

import argparse
import sys
from dataclasses import replace

import yaml
from rich.prompt import Confirm

from superrepo_sync.config import load_settings
from superrepo_sync.errors import SyncError
from superrepo_sync.git.runner import repository_root
from superrepo_sync.output import Reporter
from superrepo_sync.sync.orchestrator import Orchestrator

EXIT_NOT_A_REPOSITORY = 2
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def terminal_confirm(reporter: Reporter):
    """Confirmation callable that asks on the terminal; empty input takes the default."""

    def confirm(question: str, default: bool) -> bool:
        return Confirm.ask(question, default=default, console=reporter.out)

    return confirm


def cmd_sync(args: argparse.Namespace, reporter: Reporter | None = None) -> int:
    reporter = reporter or Reporter()

    try:
        root = repository_root()
    except SyncError as exc:
        reporter.error(f"{exc.condition}: {exc}")
        reporter.commands(exc.commands, error=True)
        return EXIT_NOT_A_REPOSITORY

    try:
        settings = load_settings(root)
    except (ValueError, yaml.YAMLError) as exc:
        reporter.error(f"invalid settings: {exc}")
        return EXIT_CONFIG_ERROR

    if getattr(args, "yes", False):
        settings = replace(settings, assume_yes=True)

    confirm = None
    if not getattr(args, "no_input", False) and sys.stdin.isatty():
        confirm = terminal_confirm(reporter)

    orchestrator = Orchestrator(
        root,
        settings=settings,
        reporter=reporter,
        confirm=confirm,
        dry_run=getattr(args, "check", False),
    )
    try:
        report = orchestrator.run()
    except KeyboardInterrupt:
        reporter.error("interrupted")
        return EXIT_INTERRUPTED

    if report.succeeded:
        reporter.info("all repositories in sync")
    else:
        reporter.error(f"{len(report.failures)} repository step(s) need attention")
    return report.exit_code
