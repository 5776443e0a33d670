"""
Build-and-diff pipeline for grouse.

Sequence for one run:

    resolve both revisions
    -> create scratch space, shared-clone the source once
    -> open (or create) the output repository
    -> for each revision: clear output, check out, build, commit output
    -> git diff <output-hash-1> <output-hash-2>
    -> remove the source clone

Each step runs to completion before the next starts: both builds share
the same clone and the same output directory.
"""

import logging
import os
import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rich.console import Console

from ..arguments import CommandArgs
from ..exit_codes import (
    BROKEN_PIPE_RETURNCODES,
    BuildFailedError,
    ConfigError,
    DiffFailedError,
    InfrastructureError,
    RefResolutionError,
)
from ..git.client import GitClient
from ..git.errors import GitError, UnresolvableRefError
from ..git.output import OutputRepository
from ..git.refs import Hash, ResolvedUserRef
from ..git.repository import Repository, open_repository
from ..git.submodules import SubmoduleResolver
from ..git.worktree import WorktreeRepository
from ..infra.filesystem import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)

SCRATCH_DIRNAME = "grouse"
OUTPUT_DIRNAME = "output"
SOURCE_PREFIX = "source-"


@dataclass
class PipelineOptions:
    """Options for one build-and-diff run."""
    build_command: List[str] = field(default_factory=lambda: ["hugo"])
    destination_flag: str = "--destination"
    build_args: List[str] = field(default_factory=list)
    diff_command: str = "diff"
    diff_args: List[str] = field(default_factory=list)
    git_args: List[str] = field(default_factory=list)
    scratch_dir: Optional[str] = None  # None: inside the source's git dir
    keep_worktree: bool = False
    submodule_strategies: List[str] = field(
        default_factory=lambda: ["local_worktree", "shared_local_clone", "remote_fetch"]
    )
    submodule_max_depth: int = 32
    author_name: str = "Grouse Diff"
    author_email: str = "grouse-diff@example.com"

    @classmethod
    def from_config(cls, config: Dict[str, Any], args: CommandArgs) -> 'PipelineOptions':
        """Combine loaded configuration with parsed command line arguments."""
        build = config.get("build", {})
        submodules = config.get("submodules", {})
        output = config.get("output", {})

        strategies = submodules.get("strategies", cls().submodule_strategies)
        if isinstance(strategies, str):
            strategies = [s.strip() for s in strategies.split(",") if s.strip()]

        try:
            build_command = shlex.split(str(build.get("command", "hugo")))
        except ValueError as e:
            raise ConfigError(f"Couldn't parse build.command: {e}") from e
        if not build_command:
            raise ConfigError("build.command must not be empty")

        return cls(
            build_command=build_command,
            destination_flag=build.get("destination_flag", "--destination"),
            build_args=list(args.build_args),
            diff_command=args.diff_command,
            diff_args=list(args.diff_args),
            git_args=list(args.git_args),
            scratch_dir=config.get("scratch", {}).get("directory") or None,
            keep_worktree=args.keep_worktree,
            submodule_strategies=list(strategies),
            submodule_max_depth=int(submodules.get("max_depth", 32)),
            author_name=output.get("author_name", "Grouse Diff"),
            author_email=output.get("author_email", "grouse-diff@example.com"),
        )


@dataclass
class BuildRecord:
    """One revision's build, committed to the output repository."""
    ref: ResolvedUserRef
    output_hash: Hash


@dataclass
class PipelineResult:
    """What a pipeline run produced."""
    output_dir: str
    source_dir: str
    builds: List[BuildRecord] = field(default_factory=list)
    source_kept: bool = False


class DiffPipeline:
    """
    Builds a site at two revisions and diffs the outputs.

    Example:
        pipeline = DiffPipeline(PipelineOptions(diff_args=["--stat"]))
        result = pipeline.run(os.getcwd(), ["main", "HEAD"])
        print(result.builds[0].output_hash)
    """

    def __init__(
        self,
        options: Optional[PipelineOptions] = None,
        git: Optional[GitClient] = None,
        fs: Optional[FileSystem] = None,
        console: Optional[Console] = None
    ):
        """
        Initialize DiffPipeline.

        Args:
            options: Pipeline options (defaults if None)
            git: GitClient instance (creates new if None)
            fs: FileSystem instance (local filesystem if None)
            console: Console for progress messages (stderr if None)
        """
        self.options = options or PipelineOptions()
        self.git = git or GitClient()
        self.fs = fs or LocalFileSystem()
        self.console = console or Console(stderr=True)
        try:
            self.resolver = SubmoduleResolver.from_names(
                self.options.submodule_strategies,
                max_depth=self.options.submodule_max_depth,
            )
        except ValueError as e:
            raise ConfigError(str(e)) from e

    def run(self, repo_dir: str, revisions: Sequence[str]) -> PipelineResult:
        """
        Run the whole pipeline.

        Args:
            repo_dir: Directory the user invoked grouse from
            revisions: Exactly two revisions, in comparison order

        Returns:
            PipelineResult with the output repository and both build hashes

        Raises:
            CommandError subclasses, classified by cause
        """
        repo, relative_dir = self.open_source(repo_dir)
        refs = [self.resolve(repo, revision) for revision in revisions]
        self.console.print(
            "Computing diff between revisions "
            + " and ".join(ref.markup() for ref in refs)
        )

        scratch_dir = self.prepare_scratch(repo)
        clone = self.materialize(repo, scratch_dir)
        result = PipelineResult(
            output_dir=os.path.join(scratch_dir, OUTPUT_DIRNAME),
            source_dir=clone.root_dir,
            source_kept=self.options.keep_worktree,
        )
        try:
            output = self.open_output(result.output_dir)
            for ref in refs:
                result.builds.append(self.build_revision(ref, clone, relative_dir, output))
            self.diff(output, result.builds[0].output_hash, result.builds[1].output_hash)
        finally:
            if self.options.keep_worktree:
                self.console.print(f"Keeping source worktree at {clone.root_dir}")
            else:
                clone.remove()
        return result

    def open_source(self, repo_dir: str) -> Tuple[Repository, str]:
        """Open the repository containing repo_dir and locate repo_dir inside it."""
        try:
            repo = open_repository(repo_dir, git=self.git, fs=self.fs)
            relative_dir = repo.relative_location(repo_dir)
        except GitError as e:
            raise InfrastructureError(str(e)) from e
        logger.debug(f"Source repository {repo.root_dir}, building from '{relative_dir}'")
        return repo, relative_dir

    def resolve(self, repo: Repository, revision: str) -> ResolvedUserRef:
        try:
            return repo.resolve_commit(revision)
        except UnresolvableRefError as e:
            raise RefResolutionError(revision, f"Couldn't resolve '{revision}': unknown revision") from e

    def prepare_scratch(self, repo: Repository) -> str:
        """Create (if needed) and return the scratch directory."""
        try:
            scratch_dir = self.options.scratch_dir or repo.git_path(SCRATCH_DIRNAME)
            scratch_dir = os.path.abspath(os.path.expanduser(scratch_dir))
            self.fs.make_dirs(scratch_dir)
        except (GitError, OSError) as e:
            raise InfrastructureError(f"Couldn't create scratch directory: {e}") from e
        return scratch_dir

    def materialize(self, repo: Repository, scratch_dir: str) -> WorktreeRepository:
        """Shared-clone the source, with submodules, into a fresh scratch directory."""
        try:
            source_dir = self.fs.make_temp_dir(scratch_dir, SOURCE_PREFIX)
        except OSError as e:
            raise InfrastructureError(f"Couldn't create scratch directory: {e}") from e
        try:
            return repo.recursive_shared_clone_to(source_dir, resolver=self.resolver)
        except (GitError, OSError) as e:
            self.fs.remove_tree(source_dir)
            raise InfrastructureError(f"Couldn't prepare a copy of {repo.root_dir}: {e}") from e

    def open_output(self, output_dir: str) -> OutputRepository:
        try:
            return OutputRepository.open_or_init(
                output_dir,
                git=self.git,
                fs=self.fs,
                author_name=self.options.author_name,
                author_email=self.options.author_email,
            )
        except (GitError, OSError) as e:
            raise InfrastructureError(f"Couldn't initialize output repository at {output_dir}: {e}") from e

    def build_revision(
        self,
        ref: ResolvedUserRef,
        clone: WorktreeRepository,
        relative_dir: str,
        output: OutputRepository
    ) -> BuildRecord:
        """Clear the output, check out ref, build it and commit the result."""
        try:
            output.clear_tracked_files()
            self.console.print(f"Checking out {ref.markup()}...")
            clone.checkout(ref.commit)
        except GitError as e:
            raise InfrastructureError(f"Couldn't check out {ref}: {e}") from e

        self.console.print(f"Building {ref.markup()}...")
        self.build(os.path.join(clone.root_dir, relative_dir), output.root_dir)

        try:
            output_hash = output.commit_everything(f"Build output for {ref}")
        except GitError as e:
            raise InfrastructureError(f"Couldn't record build output for {ref}: {e}") from e
        return BuildRecord(ref=ref, output_hash=output_hash)

    def build_command_for(self, destination: str) -> List[str]:
        """Build tool argv. User args come first so the destination flag wins."""
        return [
            *self.options.build_command,
            *self.options.build_args,
            self.options.destination_flag,
            destination,
        ]

    def build(self, source_dir: str, destination: str) -> None:
        args = self.build_command_for(destination)
        result = self.git.executor.run_attached(source_dir, args)
        if not result.ok:
            raise BuildFailedError(result.command_line, result.returncode, result.error)

    def diff_command_for(self, first: Hash, second: Hash) -> List[str]:
        return [
            self.git.executable,
            *self.options.git_args,
            self.options.diff_command,
            *self.options.diff_args,
            str(first),
            str(second),
        ]

    def diff(self, output: OutputRepository, first: Hash, second: Hash) -> None:
        """Run the diff tool attached to the terminal."""
        args = self.diff_command_for(first, second)
        result = self.git.executor.run_attached(output.root_dir, args)
        if result.error is None and result.returncode in BROKEN_PIPE_RETURNCODES:
            logger.debug("Diff output closed early; treating as success")
            return
        if not result.ok:
            raise DiffFailedError(result.command_line, result.returncode, result.error)
