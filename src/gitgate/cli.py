"""gitgate command line entry point."""

import asyncio

from pydantic_settings import (
    CliApp,
    CliSubCommand,
    SettingsConfigDict,
    get_subcommand,
)

from gitgate.command import AbortCommand, RestoreCommand, StatusCommand
from gitgate.core.config import State


class CliState(State):
    """State with CLI subcommand support.

    CliApp.run(CliState) parses arguments, loads YAML/env config,
    instantiates CliState and calls cli_cmd(), which dispatches to the
    active subcommand.
    """

    status: CliSubCommand[StatusCommand]
    restore: CliSubCommand[RestoreCommand]
    abort: CliSubCommand[AbortCommand]

    model_config = SettingsConfigDict(cli_kebab_case=True)

    def cli_cmd(self):
        """Run the active subcommand and exit with its code."""
        subcommand = get_subcommand(self)
        try:
            exit_code = asyncio.run(subcommand.run_workflow(self))
        finally:
            self.config.close()
        raise SystemExit(exit_code)


def main():
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
