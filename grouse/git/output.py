"""
Output commit tracker.

Each build's output directory is committed into a throwaway repository so
two builds can be compared with an ordinary `git diff <hash> <hash>`.
"""

import logging
from typing import Optional

from ..infra.filesystem import FileSystem
from .client import GitClient
from .errors import AlreadyExistsError
from .refs import Hash
from .repository import Repository, new_repository, open_repository

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR_NAME = "Grouse Diff"
DEFAULT_AUTHOR_EMAIL = "grouse-diff@example.com"


class OutputRepository(Repository):
    """Repository whose working copy holds exactly one build's output."""

    def __init__(
        self,
        root_dir: str,
        git: Optional[GitClient] = None,
        fs: Optional[FileSystem] = None,
        author_name: str = DEFAULT_AUTHOR_NAME,
        author_email: str = DEFAULT_AUTHOR_EMAIL
    ):
        super().__init__(root_dir, git=git, fs=fs)
        self.author_name = author_name
        self.author_email = author_email

    @classmethod
    def open_or_init(
        cls,
        path: str,
        git: Optional[GitClient] = None,
        fs: Optional[FileSystem] = None,
        **kwargs
    ) -> 'OutputRepository':
        """Initialize a repository at path, or reuse the one already there."""
        try:
            repo = new_repository(path, git=git, fs=fs)
        except AlreadyExistsError:
            logger.debug(f"Reusing output repository at {path}")
            repo = open_repository(path, git=git, fs=fs)
        return cls(repo.root_dir, git=repo.git, fs=repo.fs, **kwargs)

    def clear_tracked_files(self) -> None:
        """Delete every file the repository currently tracks from the working copy."""
        self.check("rm", "-r", "-q", "--force", "--ignore-unmatch", ".")

    def commit_everything(self, message: str) -> Hash:
        """
        Snapshot the whole working copy as a new commit.

        A commit is created even when nothing changed, so every build gets
        its own hash.

        Returns:
            Hash of the new commit
        """
        # --force so a .gitignore written by the build can't hide output
        self.check("add", "--all", "--force", ".")
        self.check(
            "-c", f"user.name={self.author_name}",
            "-c", f"user.email={self.author_email}",
            "-c", "commit.gpgsign=false",
            "commit", "--quiet", "--allow-empty", "--no-verify",
            "--message", message,
        )
        commit_hash = Hash(self.check("rev-parse", "--verify", "HEAD"))
        logger.debug(f"Committed build output as {commit_hash.short}")
        return commit_hash
