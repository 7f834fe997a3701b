"""Command-line entry point.

Usage:
    superrepo-sync              fetch, pull and push the superrepo and every submodule
    superrepo-sync --check      show the planned action per repository, change nothing
    superrepo-sync --yes        commit submodule references without asking
    superrepo-sync --no-input   never prompt; use the default answer
"""

import argparse
import logging
import sys

from superrepo_sync import __version__
from superrepo_sync.cli.sync import cmd_sync


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="superrepo-sync",
        description=(
            "Synchronize a superrepo and its nested submodules with their "
            "remotes, stopping with guidance instead of merging"
        ),
    )
    parser.add_argument(
        "--check", action="store_true",
        help="Inspect and report planned actions without fetching or changing anything",
    )
    answers = parser.add_mutually_exclusive_group()
    answers.add_argument(
        "--yes", "-y", action="store_true",
        help="Commit and push submodule references without asking",
    )
    answers.add_argument(
        "--no-input", action="store_true",
        help="Never prompt; use the configured default answer",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Log every git invocation to stderr",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return cmd_sync(args)


if __name__ == "__main__":
    sys.exit(main())
