"""
Git layer for grouse.

Everything grouse does to a repository goes through the git command line,
via GitClient. The modules here build on that:

- repository: open, create and clone repositories, resolve refs
- submodules: find and clone submodule content for shared clones
- worktree: scratch clones that can be checked out to any commit
- output: the throwaway repository that stores build outputs
"""

from .capabilities import GitCapabilities, parse_git_version
from .client import GitClient
from .errors import (
    GitError,
    GitCommandError,
    NotARepositoryError,
    AlreadyExistsError,
    UnresolvableRefError,
    SubmoduleError,
    SubmoduleCycleError,
)
from .refs import Hash, NIL_HASH, ResolvedCommit, ResolvedUserRef
from .repository import Repository, open_repository, new_repository
from .worktree import WorktreeRepository, WorktreeState
from .output import OutputRepository
from .submodules import SubmoduleInfo, SubmoduleResolver

__all__ = [
    'GitCapabilities',
    'parse_git_version',
    'GitClient',
    'GitError',
    'GitCommandError',
    'NotARepositoryError',
    'AlreadyExistsError',
    'UnresolvableRefError',
    'SubmoduleError',
    'SubmoduleCycleError',
    'Hash',
    'NIL_HASH',
    'ResolvedCommit',
    'ResolvedUserRef',
    'Repository',
    'open_repository',
    'new_repository',
    'WorktreeRepository',
    'WorktreeState',
    'OutputRepository',
    'SubmoduleInfo',
    'SubmoduleResolver',
]
