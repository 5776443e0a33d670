"""
Standard exit codes for grouse.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
UNRESOLVABLE_REF = 64    # A revision argument doesn't name a commit
BUILD_FAILED = 65        # The site build tool failed
DIFF_FAILED = 66         # The diff tool failed
CONFIG_ERROR = 67        # Configuration file error
ENVIRONMENT_ERROR = 68   # Scratch space, output repository or git itself unusable
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Return codes meaning "the reader closed the pipe", e.g. quitting a pager
BROKEN_PIPE_RETURNCODES = (141, -13)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ArgumentError(CommandError):
    """Raised when command line arguments can't be used."""
    def __init__(self, message: str):
        super().__init__(message, USAGE_ERROR)


class RefResolutionError(CommandError):
    """Raised when a user-supplied revision can't be resolved."""
    def __init__(self, ref: str, message: str):
        super().__init__(message, UNRESOLVABLE_REF)
        self.ref = ref


class ToolFailedError(CommandError):
    """Raised when an external tool exits unsuccessfully."""
    def __init__(self, tool: str, command_line: str, returncode: int,
                 exit_code: int = GENERAL_ERROR, detail: Optional[str] = None):
        message = f"{tool} failed with exit status {returncode}: {command_line}"
        if detail:
            message += f" ({detail})"
        super().__init__(message, exit_code)
        self.command_line = command_line
        self.returncode = returncode


class BuildFailedError(ToolFailedError):
    """Raised when the site build tool fails."""
    def __init__(self, command_line: str, returncode: int, detail: Optional[str] = None):
        super().__init__("Build", command_line, returncode, BUILD_FAILED, detail)


class DiffFailedError(ToolFailedError):
    """Raised when the diff tool fails."""
    def __init__(self, command_line: str, returncode: int, detail: Optional[str] = None):
        super().__init__("Diff", command_line, returncode, DIFF_FAILED, detail)


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class InfrastructureError(CommandError):
    """Raised when the environment grouse runs in is unusable."""
    def __init__(self, message: str):
        super().__init__(message, ENVIRONMENT_ERROR)
