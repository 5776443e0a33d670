"""
Commit identity types.

A ResolvedCommit is only ever built from a successful `rev-parse`, so
holding one means the commit existed in its repository when it was
resolved.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.markup import escape

if TYPE_CHECKING:
    from .repository import Repository

_HEX_PATTERN = re.compile(r'^(?:[0-9a-f]{40}|[0-9a-f]{64})$')

SHORT_HASH_LENGTH = 7


@dataclass(frozen=True)
class Hash:
    """A git object id, hex encoded. The empty value is NIL_HASH."""
    value: str = ""

    def __post_init__(self):
        if self.value and not _HEX_PATTERN.match(self.value):
            raise ValueError(f"Not a git object id: {self.value!r}")

    @property
    def is_nil(self) -> bool:
        return not self.value

    @property
    def short(self) -> str:
        return self.value[:SHORT_HASH_LENGTH]

    def __str__(self) -> str:
        return self.value


NIL_HASH = Hash()


@dataclass(frozen=True)
class ResolvedCommit:
    """A commit known to exist in a particular repository."""
    repo: 'Repository'
    hash: Hash

    def __str__(self) -> str:
        return self.hash.short


@dataclass(frozen=True)
class ResolvedUserRef:
    """A resolved commit plus the reference the user typed, for display."""
    commit: ResolvedCommit
    user_ref: str

    @property
    def hash(self) -> Hash:
        return self.commit.hash

    def __str__(self) -> str:
        return f"{self.user_ref} ({self.commit.hash.short})"

    def markup(self) -> str:
        """Rich console markup: the ref in blue, the hash in yellow."""
        return f"[blue]{escape(self.user_ref)}[/blue] ([yellow]{self.commit.hash.short}[/yellow])"
