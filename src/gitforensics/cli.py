#!/usr/bin/env python3
"""gitforensics CLI - find the commit that introduced a regression."""

import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from gitforensics.command import (
    BadCommand,
    GoodCommand,
    ResetCommand,
    StartCommand,
    StatusCommand,
    UndoCommand,
)
from gitforensics.core.config import State
from gitforensics.core.log import logger


class CliState(State):
    """Binary search through commit history for a regression.

    Start from a commit known to be bad; the oldest loaded commit is
    assumed good. Each step names a commit to test; answer with good or
    bad until a single culprit remains. The session is saved between
    invocations, so each answer is a separate command.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.history.workdir value)
    2. gitforensics.yaml in the current directory and --include files
    3. .env file
    4. Environment variables
       (GITFORENSICS_CONFIG__HISTORY__WORKDIR=value)
    """

    start: CliSubCommand[StartCommand]
    good: CliSubCommand[GoodCommand]
    bad: CliSubCommand[BadCommand]
    undo: CliSubCommand[UndoCommand]
    reset: CliSubCommand[ResetCommand]
    status: CliSubCommand[StatusCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closes the log file sink on exit
        with logger:
            raise SystemExit(subcommand.run(self))


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
