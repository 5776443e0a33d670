"""
Command execution infrastructure for grouse.

Every external program grouse starts (git, the site build tool, the diff
tool) goes through an Executor. This makes them:
- Easy to substitute in tests
- Consistently traced on the debug log
- Isolated from business logic

Ordinary non-zero exit codes are returned, not raised. The caller
decides whether a given exit code is an error.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Result of running an external command."""
    args: tuple
    cwd: str
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    error: Optional[str] = None  # set when the program could not be started

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.args)

    def describe_failure(self) -> str:
        """Human readable summary of why the command failed."""
        if self.error:
            return f"{self.command_line}: {self.error}"
        detail = self.stderr or self.stdout
        message = f"{self.command_line} exited with status {self.returncode}"
        if detail:
            message += f": {detail}"
        return message


class Executor:
    """
    Runs external programs.

    Example:
        executor = Executor()
        result = executor.run("/path/to/repo", ["git", "status"])
        if result.ok:
            print(result.stdout)
    """

    def run(self, cwd: str, args: Sequence[str]) -> CommandResult:
        """
        Run a program to completion and capture its output.

        Args:
            cwd: Working directory
            args: Program name followed by its arguments

        Returns:
            CommandResult with whitespace-trimmed stdout and stderr
        """
        args = tuple(args)
        logger.debug(f"Running command in '{cwd}': {shlex.join(args)}")
        try:
            completed = subprocess.run(
                args,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
            )
        except OSError as e:
            # Program not found, cwd missing, permission denied...
            logger.debug(f"Command could not be started: {e}")
            return CommandResult(args=args, cwd=cwd, returncode=-1, error=str(e))

        stdout = completed.stdout.strip() if completed.stdout else ""
        stderr = completed.stderr.strip() if completed.stderr else ""
        if stdout:
            logger.debug(f"stdout: {stdout}")
        if stderr:
            logger.debug(f"stderr: {stderr}")

        return CommandResult(
            args=args,
            cwd=cwd,
            stdout=stdout,
            stderr=stderr,
            returncode=completed.returncode,
        )

    def run_attached(self, cwd: str, args: Sequence[str]) -> CommandResult:
        """
        Run a program with stdin/stdout/stderr connected to the terminal.

        Used for the build and diff tools, whose output belongs to the user
        and which may be interactive (pagers, difftools).

        Returns:
            CommandResult with empty stdout/stderr
        """
        args = tuple(args)
        logger.debug(f"Running attached command in '{cwd}': {shlex.join(args)}")
        try:
            completed = subprocess.run(args, cwd=cwd)
        except OSError as e:
            logger.debug(f"Command could not be started: {e}")
            return CommandResult(args=args, cwd=cwd, returncode=-1, error=str(e))
        return CommandResult(args=args, cwd=cwd, returncode=completed.returncode)
