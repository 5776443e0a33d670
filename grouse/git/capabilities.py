"""
Git version detection and capability lookup.

Some commands grouse relies on only exist in newer git releases. Rather
than testing versions all over the code base, the installed version is
parsed once and every feature check goes through this table.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from packaging.version import Version, InvalidVersion

logger = logging.getLogger(__name__)

# Minimum git version providing each capability
CAPABILITY_TABLE = {
    'checkout_detach': Version('1.7.5'),      # git checkout --detach
    'absorb_git_dirs': Version('2.12.0'),     # git submodule absorbgitdirs
    'config_subcommands': Version('2.46.0'),  # git config get/set
}

_VERSION_PATTERN = re.compile(r'(\d+)\.(\d+)(?:\.(\d+))?')


def parse_git_version(output: str) -> Optional[Version]:
    """
    Parse the output of `git --version`.

    Handles vendor suffixes such as "git version 2.39.2 (Apple Git-143)"
    and "git version 2.45.1.windows.1".

    Returns:
        Version, or None if no version number could be found
    """
    if not output:
        return None
    match = _VERSION_PATTERN.search(output)
    if not match:
        return None
    major, minor, patch = match.groups()
    try:
        return Version(f"{major}.{minor}.{patch or 0}")
    except InvalidVersion:
        return None


@dataclass(frozen=True)
class GitCapabilities:
    """Capabilities of one installed git binary."""
    version: Optional[Version] = None

    def supports(self, capability: str) -> bool:
        """Check a capability by name. Unknown versions support nothing."""
        if capability not in CAPABILITY_TABLE:
            raise KeyError(f"Unknown git capability: {capability}")
        if self.version is None:
            return False
        return self.version >= CAPABILITY_TABLE[capability]

    @classmethod
    def from_version_output(cls, output: str) -> 'GitCapabilities':
        version = parse_git_version(output)
        if version is None:
            logger.warning(f"Couldn't parse git version from {output!r}; assuming an old git")
        return cls(version=version)

    @classmethod
    def latest(cls) -> 'GitCapabilities':
        """Capabilities of a git new enough to support everything."""
        return cls(version=max(CAPABILITY_TABLE.values()))
