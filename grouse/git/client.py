"""
Git client for grouse.

Thin layer over the Executor that knows the git binary, the installed
git's capabilities, and the small set of commands whose syntax differs
between git versions.
"""

import logging
from typing import Optional

from ..infra.executor import Executor, CommandResult
from .capabilities import GitCapabilities
from .errors import GitCommandError

logger = logging.getLogger(__name__)

# `git config --get` exits with 1 when the key is not set
CONFIG_KEY_MISSING = 1


class GitClient:
    """
    Abstraction over git command execution.

    Example:
        git = GitClient()
        head = git.check("/path/to/repo", "rev-parse", "HEAD")
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        executable: str = "git",
        capabilities: Optional[GitCapabilities] = None
    ):
        """
        Initialize GitClient.

        Args:
            executor: Executor instance (creates new if None)
            executable: git binary to invoke
            capabilities: Known capabilities (detected on first use if None)
        """
        self.executor = executor or Executor()
        self.executable = executable
        self._capabilities = capabilities

    @property
    def capabilities(self) -> GitCapabilities:
        """Capabilities of the installed git, detected once."""
        if self._capabilities is None:
            result = self.executor.run(".", [self.executable, "--version"])
            if not result.ok:
                raise GitCommandError(result, f"Couldn't run git: {result.describe_failure()}")
            self._capabilities = GitCapabilities.from_version_output(result.stdout)
            logger.debug(f"Detected git version {self._capabilities.version}")
        return self._capabilities

    def supports(self, capability: str) -> bool:
        return self.capabilities.supports(capability)

    def run(self, cwd: str, *args: str) -> CommandResult:
        """Run a git subcommand, returning the result whatever the exit code."""
        return self.executor.run(cwd, [self.executable, *args])

    def check(self, cwd: str, *args: str) -> str:
        """
        Run a git subcommand that is expected to succeed.

        Returns:
            Trimmed stdout

        Raises:
            GitCommandError: on non-zero exit or if git could not start
        """
        result = self.run(cwd, *args)
        if not result.ok:
            raise GitCommandError(result)
        return result.stdout

    def config_get(self, cwd: str, name: str, file: Optional[str] = None) -> Optional[str]:
        """
        Read a config value.

        Returns:
            The value, or None if the key is not set
        """
        if self.supports('config_subcommands'):
            args = ["config", "get"]
            if file:
                args += ["--file", file]
            args.append(name)
        else:
            args = ["config"]
            if file:
                args += ["--file", file]
            args += ["--get", name]

        result = self.run(cwd, *args)
        if result.error is None and result.returncode == CONFIG_KEY_MISSING:
            return None
        if not result.ok:
            raise GitCommandError(result)
        return result.stdout

    def config_set(self, cwd: str, name: str, value: str) -> None:
        """Write a config value to the repository's local config."""
        if self.supports('config_subcommands'):
            self.check(cwd, "config", "set", name, value)
        else:
            self.check(cwd, "config", name, value)
