"""
Service layer for grouse.

Services orchestrate the git layer and external tools to implement the
command's behaviour.
"""

from .diff_pipeline import (
    DiffPipeline,
    PipelineOptions,
    PipelineResult,
    BuildRecord,
)

__all__ = [
    'DiffPipeline',
    'PipelineOptions',
    'PipelineResult',
    'BuildRecord',
]
