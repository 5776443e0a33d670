"""
Tests for git version parsing and capability checks.
"""

import pytest
from unittest.mock import Mock
from packaging.version import Version

from grouse.git.capabilities import GitCapabilities, parse_git_version
from grouse.git.client import GitClient
from grouse.git.errors import GitCommandError
from grouse.infra.executor import CommandResult


class TestParseGitVersion:

    @pytest.mark.parametrize("output,expected", [
        ("git version 2.43.0", "2.43.0"),
        ("git version 2.39.2 (Apple Git-143)", "2.39.2"),
        ("git version 2.45.1.windows.1", "2.45.1"),
        ("git version 1.8", "1.8.0"),
    ])
    def test_parses_vendor_formats(self, output, expected):
        """Test parsing vendor-specific version strings."""
        assert parse_git_version(output) == Version(expected)

    def test_unparseable(self):
        """Test unparseable version output."""
        assert parse_git_version("") is None
        assert parse_git_version("git version unknown") is None


class TestGitCapabilities:

    def test_threshold_is_inclusive(self):
        """Test that the minimum version itself qualifies."""
        caps = GitCapabilities(Version("2.12.0"))
        assert caps.supports("absorb_git_dirs")
        assert not GitCapabilities(Version("2.11.4")).supports("absorb_git_dirs")

    def test_config_subcommands_need_recent_git(self):
        """Test that config subcommands need git 2.46."""
        assert not GitCapabilities(Version("2.45.2")).supports("config_subcommands")
        assert GitCapabilities(Version("2.46.0")).supports("config_subcommands")

    def test_unknown_version_supports_nothing(self):
        """Test that an unknown version disables every capability."""
        caps = GitCapabilities.from_version_output("garbage")
        assert caps.version is None
        assert not caps.supports("checkout_detach")

    def test_unknown_capability_raises(self):
        """Test asking about an unknown capability."""
        with pytest.raises(KeyError):
            GitCapabilities.latest().supports("time_travel")

    def test_latest_supports_everything(self):
        """Test the newest capability set."""
        caps = GitCapabilities.latest()
        for name in ("checkout_detach", "absorb_git_dirs", "config_subcommands"):
            assert caps.supports(name)


class TestGitClientCapabilities:
    """GitClient detects the version once and picks syntax from it."""

    def _client(self, version_output, returncode=0):
        executor = Mock()
        executor.run.return_value = CommandResult(
            args=("git", "--version"), cwd=".", stdout=version_output, returncode=returncode
        )
        return GitClient(executor=executor), executor

    def test_version_detected_once(self):
        """Test that git --version runs only once."""
        client, executor = self._client("git version 2.40.1")
        assert client.supports("absorb_git_dirs")
        assert client.supports("checkout_detach")
        assert executor.run.call_count == 1

    def test_failed_detection_raises(self):
        """Test failing to run git --version."""
        client, _ = self._client("", returncode=127)
        with pytest.raises(GitCommandError):
            client.capabilities

    def test_config_get_uses_legacy_syntax_on_old_git(self):
        """Test config lookup syntax on old git."""
        executor = Mock()
        executor.run.return_value = CommandResult(args=(), cwd=".", stdout="value")
        client = GitClient(executor=executor, capabilities=GitCapabilities(Version("2.30.0")))

        assert client.config_get("/repo", "remote.origin.url") == "value"
        executor.run.assert_called_with("/repo", ["git", "config", "--get", "remote.origin.url"])

    def test_config_get_uses_subcommand_on_new_git(self):
        """Test config lookup syntax on new git."""
        executor = Mock()
        executor.run.return_value = CommandResult(args=(), cwd=".", stdout="value")
        client = GitClient(executor=executor, capabilities=GitCapabilities.latest())

        client.config_get("/repo", "submodule.theme.url", file=".gitmodules")
        executor.run.assert_called_with(
            "/repo", ["git", "config", "get", "--file", ".gitmodules", "submodule.theme.url"]
        )

    def test_config_get_missing_key(self):
        """Test looking up a key that is not set."""
        executor = Mock()
        executor.run.return_value = CommandResult(args=(), cwd=".", returncode=1)
        client = GitClient(executor=executor, capabilities=GitCapabilities.latest())
        assert client.config_get("/repo", "remote.origin.url") is None
