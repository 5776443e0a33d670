"""
grouse - diff the generated output of a static site between two commits.

Imagine that on every commit of your site you had also generated the site
and stored the result in version control. grouse approximates that: it
checks out each revision into private scratch space (submodules
included, without touching your working copy), runs the build tool, and
commits each build's output into a throwaway repository so the two
outputs can be compared with git diff.

Quick Start:
    from grouse import DiffPipeline, PipelineOptions

    pipeline = DiffPipeline(PipelineOptions(diff_args=["--stat"]))
    result = pipeline.run(".", ["HEAD^", "HEAD"])

Lower level:
    from grouse import open_repository

    repo = open_repository(".")
    ref = repo.resolve_commit("HEAD^")
    clone = repo.recursive_shared_clone_to("/tmp/scratch/source")
    clone.checkout(ref.commit)
    clone.remove()
"""

__version__ = "0.4.0"

from .git import (
    Hash,
    NIL_HASH,
    ResolvedCommit,
    ResolvedUserRef,
    Repository,
    WorktreeRepository,
    OutputRepository,
    SubmoduleResolver,
    open_repository,
    new_repository,
)
from .services import DiffPipeline, PipelineOptions, PipelineResult
from .config import load_config

__all__ = [
    "__version__",
    "Hash",
    "NIL_HASH",
    "ResolvedCommit",
    "ResolvedUserRef",
    "Repository",
    "WorktreeRepository",
    "OutputRepository",
    "SubmoduleResolver",
    "open_repository",
    "new_repository",
    "DiffPipeline",
    "PipelineOptions",
    "PipelineResult",
    "load_config",
]
