"""
Submodule resolution for shared clones.

When grouse clones a repository into scratch space it also has to
provide every submodule, ideally without touching the network. For each
declared submodule a chain of strategies is asked where its content can
come from:

    local_worktree      the submodule as checked out in the source working copy
    shared_local_clone  the source's absorbed git dir (.git/modules/<name>)
    remote_fetch        nothing local; `git submodule update` fetches it
                        from the upstream URL during checkout

Local sources are shared-cloned into place and then processed the same
way, one level deeper. The walk uses an explicit stack and tracks each
clone's ancestor chain so cyclic submodule references are reported
instead of recursing forever.
"""

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import (
    GitCommandError,
    GitError,
    NotARepositoryError,
    SubmoduleCycleError,
    SubmoduleError,
)
from .repository import Repository, open_repository, same_path
from .worktree import WorktreeRepository

logger = logging.getLogger(__name__)

GITMODULES_FILE = ".gitmodules"
DEFAULT_MAX_DEPTH = 32


@dataclass(frozen=True)
class SubmoduleInfo:
    """One entry of a .gitmodules file."""
    config_prefix: str  # e.g. "submodule.themes/paperesque"
    path: str

    @property
    def name(self) -> str:
        return self.config_prefix[len("submodule."):]

    @property
    def url_key(self) -> str:
        return f"{self.config_prefix}.url"


def parse_submodule_paths(output: str) -> List[SubmoduleInfo]:
    """
    Parse `git config --null --get-regexp` output for submodule paths.

    Entries are NUL terminated, with key and value separated by a newline:
    "submodule.themes/ananke.path\\nthemes/ananke\\0".
    """
    submodules = []
    for entry in output.split("\0"):
        if not entry.strip():
            continue
        key, _, value = entry.strip("\n").partition("\n")
        if not key.endswith(".path") or not value:
            continue
        submodules.append(SubmoduleInfo(config_prefix=key[:-len(".path")], path=value))
    return submodules


def read_submodule_declarations(repo: Repository) -> List[SubmoduleInfo]:
    """
    List the submodules declared in repo's .gitmodules.

    A missing .gitmodules means no submodules.
    """
    if not repo.fs.is_file(os.path.join(repo.root_dir, GITMODULES_FILE)):
        return []

    result = repo.run("config", "--file", GITMODULES_FILE, "--null", "--get-regexp", r"^submodule\..*\.path$")
    if result.error is None and result.returncode == 1 and not result.stderr:
        # No matching keys
        return []
    if not result.ok:
        raise GitCommandError(result)
    return parse_submodule_paths(result.stdout)


def upstream_url(parent: Repository, info: SubmoduleInfo) -> Optional[str]:
    """The URL the parent repository records for a submodule, if any."""
    url = parent.config_get(info.url_key)
    if url:
        return url
    if parent.has_worktree and parent.fs.is_file(os.path.join(parent.root_dir, GITMODULES_FILE)):
        return parent.git.config_get(parent.root_dir, info.url_key, file=GITMODULES_FILE)
    return None


@dataclass(frozen=True)
class SubmoduleSource:
    """Where a submodule's content will come from."""
    strategy: str
    location: str
    repo: Optional[Repository] = None  # None when content is fetched later

    @property
    def is_local(self) -> bool:
        return self.repo is not None


class SubmoduleStrategy:
    """Finds content for a submodule of a source repository."""

    name = ""

    def locate(self, parent: Repository, info: SubmoduleInfo) -> Optional[SubmoduleSource]:
        raise NotImplementedError


class LocalWorktreeStrategy(SubmoduleStrategy):
    """Use the submodule already checked out in the source working copy."""

    name = "local_worktree"

    def locate(self, parent, info):
        if not parent.has_worktree:
            return None
        candidate = os.path.join(parent.root_dir, info.path)
        if not parent.fs.is_dir(candidate):
            return None
        try:
            repo = open_repository(candidate, git=parent.git, fs=parent.fs)
        except NotARepositoryError:
            return None
        if not same_path(repo.root_dir, candidate):
            # Resolved to the parent (or something else): never initialized here
            logger.debug(f"{info.path} is not a distinct repository in {parent.root_dir}")
            return None
        return SubmoduleSource(self.name, repo.root_dir, repo)


class SharedLocalCloneStrategy(SubmoduleStrategy):
    """Use the source's absorbed submodule storage under .git/modules."""

    name = "shared_local_clone"

    def locate(self, parent, info):
        result = parent.run("rev-parse", "--git-path", f"modules/{info.name}")
        if not result.ok or not result.stdout:
            return None
        modules_dir = result.stdout
        if not os.path.isabs(modules_dir):
            modules_dir = os.path.normpath(os.path.join(parent.root_dir, modules_dir))
        if not parent.fs.is_file(os.path.join(modules_dir, "HEAD")):
            return None
        repo = Repository(modules_dir, git=parent.git, fs=parent.fs, has_worktree=False)
        return SubmoduleSource(self.name, modules_dir, repo)


class RemoteFetchStrategy(SubmoduleStrategy):
    """Leave the submodule to `git submodule update`, which fetches from upstream."""

    name = "remote_fetch"

    def locate(self, parent, info):
        url = upstream_url(parent, info)
        if not url:
            return None
        return SubmoduleSource(self.name, url)


STRATEGIES = {
    strategy.name: strategy
    for strategy in (LocalWorktreeStrategy, SharedLocalCloneStrategy, RemoteFetchStrategy)
}


@dataclass(frozen=True)
class _CloneJob:
    source: Repository
    clone: WorktreeRepository
    chain: Tuple[str, ...]  # real paths of the source and its ancestors

    @property
    def depth(self) -> int:
        return len(self.chain) - 1


class SubmoduleResolver:
    """
    Builds recursive shared clones.

    Example:
        resolver = SubmoduleResolver.from_names(["local_worktree", "remote_fetch"])
        clone = resolver.clone(repo, "/tmp/scratch/source")
    """

    def __init__(
        self,
        strategies: Optional[Iterable[SubmoduleStrategy]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH
    ):
        if strategies is None:
            strategies = [cls() for cls in STRATEGIES.values()]
        self.strategies = list(strategies)
        self.max_depth = max_depth

    @classmethod
    def from_names(cls, names: Iterable[str], max_depth: int = DEFAULT_MAX_DEPTH) -> 'SubmoduleResolver':
        strategies = []
        for name in names:
            if name not in STRATEGIES:
                raise ValueError(
                    f"Unknown submodule strategy '{name}' (choose from {', '.join(STRATEGIES)})"
                )
            strategies.append(STRATEGIES[name]())
        return cls(strategies, max_depth=max_depth)

    def locate(self, parent: Repository, info: SubmoduleInfo) -> Optional[SubmoduleSource]:
        """Ask each strategy in turn; the first answer wins."""
        for strategy in self.strategies:
            found = strategy.locate(parent, info)
            if found is not None:
                logger.debug(f"Submodule {info.path}: using {strategy.name} ({found.location})")
                return found
        return None

    def clone(self, source: Repository, dst: str) -> WorktreeRepository:
        """
        Shared-clone source to dst together with all locally available submodules.

        Any failure after the root clone has been created aborts the whole
        operation; a half-populated tree is never returned.

        Raises:
            SubmoduleCycleError: if a submodule refers back to an ancestor
            SubmoduleError: if nesting exceeds max_depth or a URL is missing
            GitCommandError: if any git step fails
        """
        root = source.shared_clone_to(dst)
        try:
            origin = source.remote_url()
            if origin:
                root.check("remote", "set-url", "origin", origin)

            stack = [_CloneJob(source, root, (os.path.realpath(source.root_dir),))]
            while stack:
                job = stack.pop()
                stack.extend(self._clone_submodules(job))

            if root.git.supports('absorb_git_dirs') and root.gitlink_paths():
                root.check("submodule", "--quiet", "absorbgitdirs")
        except (GitError, OSError):
            root.remove()
            raise
        return root

    def _clone_submodules(self, job: _CloneJob) -> List[_CloneJob]:
        declared_in = job.source if job.source.has_worktree else job.clone
        submodules = read_submodule_declarations(declared_in)
        if not submodules:
            return []

        job.clone.check("submodule", "init")

        nested_jobs = []
        for info in submodules:
            found = self.locate(job.source, info)
            if found is None:
                logger.info(f"No source found for submodule {info.path}; it will be empty unless fetched at checkout")
                continue

            url = upstream_url(job.source, info)
            if not found.is_local:
                job.clone.git.config_set(job.clone.root_dir, info.url_key, url)
                continue

            if job.depth + 1 > self.max_depth:
                raise SubmoduleError(
                    f"Submodule nesting deeper than {self.max_depth} levels at {info.path}"
                )
            real = os.path.realpath(found.repo.root_dir)
            if real in job.chain:
                raise SubmoduleCycleError(job.chain + (real,))

            nested = found.repo.shared_clone_to(os.path.join(job.clone.root_dir, info.path))

            url = url or found.repo.remote_url()
            if not url:
                raise SubmoduleError(f"Couldn't determine the upstream URL of submodule {info.path}")
            job.clone.git.config_set(job.clone.root_dir, info.url_key, url)
            nested.check("remote", "set-url", "origin", url)

            nested_jobs.append(_CloneJob(found.repo, nested, job.chain + (real,)))
        return nested_jobs
