"""
Infrastructure layer for grouse.

Contains abstractions for external systems:
- Executor: running external programs
- FileSystem: direct file and directory access

These provide clean interfaces that can be substituted in tests.
"""

from .executor import Executor, CommandResult
from .filesystem import FileSystem, LocalFileSystem

__all__ = [
    'Executor',
    'CommandResult',
    'FileSystem',
    'LocalFileSystem',
]
