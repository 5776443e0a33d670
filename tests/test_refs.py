"""
Tests for commit identity types.
"""

import pytest
from unittest.mock import Mock

from grouse.git.refs import NIL_HASH, Hash, ResolvedCommit, ResolvedUserRef

SHA1 = "0123456789abcdef0123456789abcdef01234567"


class TestHash:

    def test_sha1_and_sha256(self):
        """Test SHA-1 and SHA-256 hashes."""
        assert str(Hash(SHA1)) == SHA1
        assert not Hash("a" * 64).is_nil

    @pytest.mark.parametrize("value", ["xyz", "ABCDEF" * 7, SHA1[:39], "HEAD"])
    def test_rejects_non_hashes(self, value):
        """Test rejecting strings that are not hashes."""
        with pytest.raises(ValueError):
            Hash(value)

    def test_nil(self):
        """Test the nil hash."""
        assert NIL_HASH.is_nil
        assert Hash() == NIL_HASH

    def test_short(self):
        """Test the abbreviated hash."""
        assert Hash(SHA1).short == "0123456"


class TestResolvedUserRef:

    def test_display_forms(self):
        """Test display forms of a resolved ref."""
        ref = ResolvedUserRef(ResolvedCommit(repo=Mock(), hash=Hash(SHA1)), "main")
        assert str(ref) == "main (0123456)"
        assert ref.hash == Hash(SHA1)
        assert str(ref.commit) == "0123456"

    def test_markup_escapes_user_text(self):
        """Test that markup escapes the user's ref text."""
        ref = ResolvedUserRef(ResolvedCommit(repo=Mock(), hash=Hash(SHA1)), "[bold]x")
        assert "\\[bold]x" in ref.markup()
        assert "[yellow]0123456[/yellow]" in ref.markup()
