"""
Scratch working copies that can be checked out to any commit.

A WorktreeRepository moves through three states:

    CLONED  --checkout(c)-->  CHECKED_OUT(c)  --checkout(d)-->  CHECKED_OUT(d)
       \\                          |
        +-------- remove() -------+-------->  REMOVED

After checkout(c) the files on disk are exactly what c tracks, with every
submodule populated to the commit c records for it.
"""

import logging
import os
import shlex
from enum import Enum
from typing import List, Optional

from ..infra.filesystem import FileSystem
from .client import GitClient
from .errors import GitError
from .refs import Hash, ResolvedCommit
from .repository import Repository

logger = logging.getLogger(__name__)

GITLINK_MODE = "160000"


class WorktreeState(Enum):
    CLONED = "cloned"
    CHECKED_OUT = "checked_out"
    REMOVED = "removed"


def parse_gitlinks(ls_files_output: str) -> List[str]:
    """
    Extract submodule paths from `git ls-files --stage -z` output.

    Each entry looks like "160000 <hash> 0\\t<path>".
    """
    paths = []
    for entry in ls_files_output.split("\0"):
        if not entry:
            continue
        meta, _, path = entry.partition("\t")
        if meta.split(" ", 1)[0] == GITLINK_MODE and path:
            paths.append(path)
    return paths


class WorktreeRepository(Repository):
    """
    A private clone that grouse may check out and delete at will.

    Never commit in here: it exists only to materialize source trees.
    """

    def __init__(
        self,
        root_dir: str,
        git: Optional[GitClient] = None,
        fs: Optional[FileSystem] = None
    ):
        super().__init__(root_dir, git=git, fs=fs)
        self.state = WorktreeState.CLONED
        self.checked_out: Optional[Hash] = None

    def gitlink_paths(self) -> List[str]:
        """Submodule paths recorded in the current index."""
        return parse_gitlinks(self.check("ls-files", "--stage", "-z"))

    def checkout(self, commit: ResolvedCommit) -> None:
        """
        Force the working copy to exactly the content of commit.

        Untracked and ignored files are deleted, and submodules are
        initialized and updated recursively. Safe to call repeatedly with
        different commits.

        Raises:
            GitError: if the worktree was removed or any git step fails
        """
        if self.state is WorktreeState.REMOVED:
            raise GitError(f"Worktree {self.root_dir} has been removed")

        logger.debug(f"Checking out {commit.hash} in {self.root_dir}")

        previous_gitlinks = self.gitlink_paths()
        if self.git.supports('absorb_git_dirs'):
            self._clear_submodule_checkouts()

        if self.git.supports('checkout_detach'):
            self.check("checkout", "--quiet", "--force", "--detach", str(commit.hash))
        else:
            self.check("checkout", "--quiet", "--force", str(commit.hash))

        # -ff also removes untracked nested repositories
        self.check("clean", "-ffdxq")
        self._remove_stale_repositories(previous_gitlinks)
        self._clear_unpopulated_submodules()

        self.check("submodule", "update", "--init", "--recursive", "--force")
        self.check(
            "submodule", "--quiet", "foreach", "--recursive",
            f"{shlex.quote(self.git.executable)} clean -ffdxq"
        )

        self.state = WorktreeState.CHECKED_OUT
        self.checked_out = commit.hash

    def _clear_submodule_checkouts(self) -> None:
        """
        Delete every submodule working directory of the current index.

        Submodule git directories are first absorbed into .git/modules, so
        nothing is lost; `submodule update` repopulates whatever the next
        commit needs. This lets a checkout replace a submodule with plain
        files (or the reverse) without stale nested .git markers.
        """
        gitlinks = self.gitlink_paths()
        if not gitlinks:
            return
        self.check("submodule", "--quiet", "absorbgitdirs")
        for path in gitlinks:
            target = os.path.join(self.root_dir, path)
            if self.fs.is_dir(os.path.join(target, ".git")):
                # Never absorbed (not a registered submodule); keep it
                logger.debug(f"Leaving unabsorbed repository at {target}")
                continue
            if self.fs.exists(target):
                self.fs.remove_tree(target)

    def _remove_stale_repositories(self, previous_gitlinks: List[str]) -> None:
        """
        Drop nested .git markers left at paths that stopped being submodules.

        `clean` keeps a nested repository whose directory now holds tracked
        files, and without absorbgitdirs nothing else removes it. A later
        `submodule update` clones it again from the configured URL.
        """
        current = set(self.gitlink_paths())
        for path in previous_gitlinks:
            if path in current:
                continue
            marker = os.path.join(self.root_dir, path, ".git")
            if self.fs.exists(marker):
                logger.debug(f"Removing stale repository marker {marker}")
                self.fs.remove_tree(marker)

    def _clear_unpopulated_submodules(self) -> None:
        """Empty submodule directories that hold leftover files but no repository."""
        for path in self.gitlink_paths():
            target = os.path.join(self.root_dir, path)
            if not self.fs.is_dir(target) or self.fs.exists(os.path.join(target, ".git")):
                continue
            if self.fs.list_dir(target):
                logger.debug(f"Clearing leftover files from submodule path {target}")
                self.fs.remove_tree(target)
                self.fs.make_dirs(target)

    def remove(self) -> None:
        """Delete the clone from disk. Calling it again is harmless."""
        self.fs.remove_tree(self.root_dir)
        self.state = WorktreeState.REMOVED
        self.checked_out = None
