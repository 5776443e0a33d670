"""
Validation of the command line values grouse receives.

All user input is checked here, before any subprocess is started, so a
typo in a quoted argument string never leaves half-built scratch state
behind.
"""

import os
import shlex
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .exit_codes import ArgumentError

DEFAULT_OTHER_REVISION = "HEAD"


@dataclass
class CommandArgs:
    """Everything one grouse run needs from the command line."""
    repo_dir: str
    commits: List[str]
    diff_command: str = "diff"
    diff_args: List[str] = field(default_factory=list)
    build_args: List[str] = field(default_factory=list)
    git_args: List[str] = field(default_factory=list)
    keep_worktree: bool = False


def split_flag_value(flag: str, value: Optional[str]) -> List[str]:
    """
    Split a shell-quoted flag value into arguments.

    Raises:
        ArgumentError: naming the flag, if the quoting is unbalanced
    """
    if not value:
        return []
    try:
        return shlex.split(value)
    except ValueError as e:
        raise ArgumentError(f"Couldn't parse the value provided to {flag}: {e}") from e


def parse_args(
    revisions: Sequence[str],
    diffargs: Optional[str] = None,
    buildargs: Optional[str] = None,
    gitargs: Optional[str] = None,
    tool: bool = False,
    keep_worktree: bool = False,
    repo_dir: Optional[str] = None,
    diff_command: str = "diff",
    tool_command: str = "difftool"
) -> CommandArgs:
    """
    Turn raw command line values into CommandArgs.

    A single revision is compared against HEAD.

    Raises:
        ArgumentError: for a wrong number of revisions or malformed quoting
    """
    commits = list(revisions)
    if len(commits) == 1:
        commits.append(DEFAULT_OTHER_REVISION)
    elif len(commits) != 2:
        raise ArgumentError(f"Requires one or two git references to diff, got {len(commits)}")

    return CommandArgs(
        repo_dir=repo_dir or os.getcwd(),
        commits=commits,
        diff_command=tool_command if tool else diff_command,
        diff_args=split_flag_value("--diffargs", diffargs),
        build_args=split_flag_value("--buildargs", buildargs),
        git_args=split_flag_value("--gitargs", gitargs),
        keep_worktree=keep_worktree,
    )
