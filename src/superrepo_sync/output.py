"""Terminal output: informational, warning and error messages.

Info and warnings go to stdout, errors to stderr. Rich decides whether
the stream is a terminal and drops styling when it is not.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from superrepo_sync.models import OutcomeKind, SyncOutcome, SyncReport

_OUTCOME_STYLES = {
    OutcomeKind.SYNCED: "green",
    OutcomeKind.SKIPPED: "yellow",
    OutcomeKind.FAILED: "red",
    OutcomeKind.NEEDS_MANUAL_INTERVENTION: "red",
}


class Reporter:
    """Three-level message sink used by every sync component."""

    def __init__(self, out: Console | None = None, err: Console | None = None):
        self.out = out or Console(highlight=False)
        self.err = err or Console(stderr=True, highlight=False)

    def info(self, message: str) -> None:
        self.out.print(f"[cyan]::[/cyan] {escape(message)}")

    def warn(self, message: str) -> None:
        self.out.print(f"[yellow]warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.err.print(f"[bold red]error:[/bold red] {escape(message)}")

    def commands(self, commands: list[str] | tuple[str, ...], error: bool = False) -> None:
        """Print a copy-paste block of shell commands."""
        console = self.err if error else self.out
        for command in commands:
            style = "dim" if command.startswith("#") else "bold"
            console.print(f"    [{style}]{escape(command)}[/{style}]")

    def outcome(self, name: str, outcome: SyncOutcome) -> None:
        """Print an outcome at the severity it deserves."""
        if outcome.is_failure:
            condition = outcome.error.condition if outcome.error else "failed"
            where = outcome.error.path if outcome.error and outcome.error.path else name
            self.error(f"{name}: {condition} in {where}")
            if outcome.message:
                self.err.print(escape(outcome.message), style="red")
            if outcome.commands:
                self.commands(outcome.commands, error=True)
        elif outcome.kind is OutcomeKind.SKIPPED and outcome.commands:
            self.warn(f"{name}: {outcome.message}")
            self.commands(outcome.commands)
        elif outcome.message:
            self.info(f"{name}: {outcome.message}")

    def summary(self, report: SyncReport) -> None:
        self.out.print()
        self.out.print("  [bold]Sync summary[/bold]")
        self.out.print(f"  {'─' * 50}")
        for handle, outcome in report.entries:
            style = _OUTCOME_STYLES[outcome.kind]
            self.out.print(
                f"    {escape(handle.name):<40} [{style}]{outcome.kind.value}[/{style}]"
            )
        self.out.print(f"  {'─' * 50}")
        self.out.print(
            f"    {report.count(OutcomeKind.SYNCED)} synced, "
            f"{report.count(OutcomeKind.SKIPPED)} skipped, "
            f"{len(report.failures)} need attention"
        )
