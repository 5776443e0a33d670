"""
Repository abstraction for grouse.

A Repository is a directory known to hold a git project. It carries no
state beyond its root path; everything else is asked of git on demand.
"""

import logging
import os
from typing import Optional, TYPE_CHECKING

from ..infra.filesystem import FileSystem, LocalFileSystem
from .client import GitClient
from .errors import (
    AlreadyExistsError,
    GitCommandError,
    GitError,
    NotARepositoryError,
    UnresolvableRefError,
)
from .refs import Hash, ResolvedCommit, ResolvedUserRef

if TYPE_CHECKING:
    from .submodules import SubmoduleResolver
    from .worktree import WorktreeRepository

logger = logging.getLogger(__name__)

# Hard ceiling on upward directory traversal when looking for a repository
MAX_PARENT_TRAVERSALS = 128


def same_path(a: str, b: str) -> bool:
    """True if both paths name the same location once symlinks are resolved."""
    return os.path.realpath(a) == os.path.realpath(b)


class Repository:
    """
    A git repository on disk.

    Read-only from grouse's point of view: subclasses add the operations
    that check out or commit.
    """

    def __init__(
        self,
        root_dir: str,
        git: Optional[GitClient] = None,
        fs: Optional[FileSystem] = None,
        has_worktree: bool = True
    ):
        """
        Args:
            root_dir: Top level of the working copy, or the git directory
                itself when has_worktree is False
            git: GitClient used for every command
            fs: FileSystem used for every direct file access
            has_worktree: False for bare git directories (e.g. absorbed
                submodule storage under .git/modules)
        """
        self.root_dir = root_dir
        self.git = git or GitClient()
        self.fs = fs or LocalFileSystem()
        self.has_worktree = has_worktree

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.root_dir!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Repository) and same_path(self.root_dir, other.root_dir)

    def __hash__(self) -> int:
        return hash(os.path.realpath(self.root_dir))

    def run(self, *args: str):
        """Run git against this repository and return the CommandResult."""
        if self.has_worktree:
            return self.git.run(self.root_dir, *args)
        return self.git.run(self.root_dir, f"--git-dir={self.root_dir}", *args)

    def check(self, *args: str) -> str:
        """Run git against this repository, raising GitCommandError on failure."""
        result = self.run(*args)
        if not result.ok:
            raise GitCommandError(result)
        return result.stdout

    def _absolute(self, path: str) -> str:
        if os.path.isabs(path):
            return path
        return os.path.normpath(os.path.join(self.root_dir, path))

    def git_path(self, name: str) -> str:
        """Absolute path of a file inside the git directory (rev-parse --git-path)."""
        return self._absolute(self.check("rev-parse", "--git-path", name))

    def config_get(self, name: str) -> Optional[str]:
        if self.has_worktree:
            return self.git.config_get(self.root_dir, name)
        return self.git.config_get(self.root_dir, name, file=os.path.join(self.root_dir, "config"))

    def remote_url(self, remote: str = "origin") -> Optional[str]:
        return self.config_get(f"remote.{remote}.url")

    def resolve_commit(self, ref: str) -> ResolvedUserRef:
        """
        Resolve a branch, tag, hash or relative ref (e.g. HEAD^) to a commit.

        Raises:
            UnresolvableRefError: if ref doesn't name a commit
        """
        if not ref or ref.startswith("-"):
            raise UnresolvableRefError(ref, "not a valid revision")

        result = self.run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
        if not result.ok or not result.stdout:
            raise UnresolvableRefError(ref, result.stderr or result.error or "unknown revision")

        try:
            commit_hash = Hash(result.stdout)
        except ValueError as e:
            raise UnresolvableRefError(ref, str(e)) from e
        return ResolvedUserRef(commit=ResolvedCommit(repo=self, hash=commit_hash), user_ref=ref)

    def relative_location(self, path: str) -> str:
        """
        Path of `path` relative to the repository root.

        Returns:
            e.g. "site/content", or "" for the root itself
        """
        result = self.git.run(path, "rev-parse", "--show-prefix")
        if not result.ok:
            raise NotARepositoryError(path, result.stderr or result.error or "")
        return result.stdout.rstrip("/")

    def shared_clone_to(self, dst: str) -> 'WorktreeRepository':
        """
        Clone this repository to dst, sharing its object storage.

        Submodules are not touched; see recursive_shared_clone_to.
        """
        from .worktree import WorktreeRepository

        if same_path(dst, self.root_dir):
            raise GitError(f"Refusing to clone {self.root_dir} onto itself")

        parent = os.path.dirname(os.path.abspath(dst))
        self.fs.make_dirs(parent)
        result = self.git.run(parent, "clone", "--shared", "--quiet", self.root_dir, dst)
        if not result.ok:
            raise GitCommandError(result)
        logger.debug(f"Shared clone of {self.root_dir} created at {dst}")
        return WorktreeRepository(dst, git=self.git, fs=self.fs)

    def recursive_shared_clone_to(
        self,
        dst: str,
        resolver: Optional['SubmoduleResolver'] = None
    ) -> 'WorktreeRepository':
        """
        Clone this repository and every locally available submodule to dst.

        The clone shares object storage with this repository and with each
        submodule repository, and its submodule URLs point at the real
        upstreams so later checkouts can fetch whatever is missing.
        """
        from .submodules import SubmoduleResolver

        resolver = resolver or SubmoduleResolver()
        return resolver.clone(self, dst)


def open_repository(
    path: str,
    git: Optional[GitClient] = None,
    fs: Optional[FileSystem] = None
) -> Repository:
    """
    Open the repository containing path, walking up through parent directories.

    Raises:
        NotARepositoryError: if no repository is found within
            MAX_PARENT_TRAVERSALS levels, or git rejects the candidate
    """
    git = git or GitClient()
    fs = fs or LocalFileSystem()

    current = os.path.abspath(path)
    for _ in range(MAX_PARENT_TRAVERSALS):
        if fs.exists(os.path.join(current, ".git")):
            break
        parent = os.path.dirname(current)
        if parent == current:
            raise NotARepositoryError(path)
        current = parent
    else:
        raise NotARepositoryError(path, f"gave up after {MAX_PARENT_TRAVERSALS} parent directories")

    result = git.run(current, "rev-parse", "--show-toplevel")
    if not result.ok or not result.stdout:
        raise NotARepositoryError(path, result.stderr or result.error or "")
    return Repository(os.path.normpath(result.stdout), git=git, fs=fs)


def new_repository(
    path: str,
    git: Optional[GitClient] = None,
    fs: Optional[FileSystem] = None
) -> Repository:
    """
    Initialize an empty repository at path.

    Raises:
        AlreadyExistsError: if path is already the root of a repository
    """
    git = git or GitClient()
    fs = fs or LocalFileSystem()

    try:
        existing = open_repository(path, git=git, fs=fs)
    except NotARepositoryError:
        existing = None
    if existing is not None and same_path(existing.root_dir, path):
        raise AlreadyExistsError(path)

    fs.make_dirs(path)
    result = git.run(path, "init", "--quiet")
    if not result.ok:
        raise GitCommandError(result)
    logger.debug(f"Initialized repository at {path}")
    return Repository(path, git=git, fs=fs)
