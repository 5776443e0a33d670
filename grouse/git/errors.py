"""
Exceptions raised by the git layer.

These never terminate the process; the command layer classifies them
into exit codes (see grouse.exit_codes).
"""

from typing import Optional

from ..infra.executor import CommandResult


class GitError(Exception):
    """Base class for git layer failures."""


class GitCommandError(GitError):
    """A git command exited unsuccessfully."""

    def __init__(self, result: CommandResult, message: Optional[str] = None):
        super().__init__(message or result.describe_failure())
        self.result = result


class NotARepositoryError(GitError):
    """No git repository contains the given path."""

    def __init__(self, path: str, reason: str = ""):
        message = f"Not inside a git repository: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.path = path


class AlreadyExistsError(GitError):
    """A repository already exists where a new one was requested."""

    def __init__(self, path: str):
        super().__init__(f"A git repository already exists at {path}")
        self.path = path


class UnresolvableRefError(GitError):
    """A user-supplied reference does not name a commit."""

    def __init__(self, ref: str, detail: str = ""):
        message = f"Couldn't resolve '{ref}' to a commit"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.ref = ref


class SubmoduleError(GitError):
    """Submodule materialization failed."""


class SubmoduleCycleError(SubmoduleError):
    """A submodule refers back to one of its own ancestors."""

    def __init__(self, chain):
        self.chain = list(chain)
        super().__init__("Cyclic submodule reference: " + " -> ".join(self.chain))
