"""
Filesystem access for grouse.

Repository, worktree and pipeline code never touch os/shutil directly;
they receive a FileSystem so tests can substitute their own.
"""

import logging
import os
import shutil
import tempfile
from typing import List

logger = logging.getLogger(__name__)


class FileSystem:
    """Interface for the filesystem operations grouse needs."""

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def is_dir(self, path: str) -> bool:
        raise NotImplementedError

    def is_file(self, path: str) -> bool:
        raise NotImplementedError

    def list_dir(self, path: str) -> List[str]:
        raise NotImplementedError

    def make_dirs(self, path: str) -> None:
        raise NotImplementedError

    def make_temp_dir(self, parent: str, prefix: str) -> str:
        raise NotImplementedError

    def remove_tree(self, path: str) -> None:
        raise NotImplementedError


class LocalFileSystem(FileSystem):
    """FileSystem backed by the operating system."""

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def list_dir(self, path: str) -> List[str]:
        return sorted(os.listdir(path))

    def make_dirs(self, path: str) -> None:
        os.makedirs(path, exist_ok=True)

    def make_temp_dir(self, parent: str, prefix: str) -> str:
        return tempfile.mkdtemp(prefix=prefix, dir=parent)

    def remove_tree(self, path: str) -> None:
        """Recursively delete path. Missing paths are ignored."""
        if os.path.islink(path) or os.path.isfile(path):
            os.unlink(path)
        elif os.path.isdir(path):
            logger.debug(f"Removing directory tree {path}")
            shutil.rmtree(path)
