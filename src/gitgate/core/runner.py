"""Command execution on top of the invoke library."""

from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from gitgate.core.log import logger


class Runner(Context):
    """invoke.Context with a single execute() entry point.

    Output is always captured; callers decide what a non-zero exit
    means.
    """

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        check: bool = False,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Execute a shell command.

        Args:
            command: Command string to execute
            cwd: Working directory for the command
            timeout: Maximum execution time in seconds (None waits
                forever)
            check: Raise invoke.UnexpectedExit on non-zero exit
            env: Extra environment variables (merged into os.environ)

        Returns:
            invoke.Result with stdout, stderr and exited. A timeout
            yields the partial result with exited = -1.
        """
        kwargs = {
            "hide": True,
            "warn": not check,
            "in_stream": False,
        }
        if timeout:
            kwargs["timeout"] = timeout
        if env:
            kwargs["env"] = env

        logger.spew("Running command", command=command)
        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            result.exited = -1

        logger.spew(
            "Command finished", command=command, exited=result.exited
        )
        return result
