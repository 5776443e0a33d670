"""
Tests for the output commit tracker.
"""

import os

from grouse.git.output import OutputRepository
from grouse.git.repository import same_path

from conftest import git, requires_git, write_files

pytestmark = requires_git


def test_open_or_init_reuses_existing(tmp_path):
    """Test reusing an existing output repository."""
    first = OutputRepository.open_or_init(str(tmp_path / "output"))
    write_files(tmp_path / "output", {"index.html": "one"})
    first.commit_everything("first")

    second = OutputRepository.open_or_init(str(tmp_path / "output"))
    assert same_path(second.root_dir, first.root_dir)
    assert git(second.root_dir, "rev-list", "--count", "HEAD") == "1"


def test_every_commit_gets_its_own_hash(tmp_path):
    """Test that identical builds still get distinct commits."""
    output = OutputRepository.open_or_init(str(tmp_path / "output"))

    write_files(tmp_path / "output", {"index.html": "same"})
    first = output.commit_everything("build 1")
    output.clear_tracked_files()
    write_files(tmp_path / "output", {"index.html": "same"})
    second = output.commit_everything("build 2")

    assert first != second
    assert git(output.root_dir, "rev-parse", f"{first}^{{tree}}") == \
        git(output.root_dir, "rev-parse", f"{second}^{{tree}}")
    assert git(output.root_dir, "diff", str(first), str(second)) == ""


def test_clear_tracked_files(tmp_path):
    """Test clearing tracked files."""
    output = OutputRepository.open_or_init(str(tmp_path / "output"))
    write_files(tmp_path / "output", {"a.html": "a", "posts/b.html": "b"})
    output.commit_everything("build")

    output.clear_tracked_files()
    assert not os.path.exists(tmp_path / "output" / "a.html")
    assert not os.path.exists(tmp_path / "output" / "posts" / "b.html")

    # Nothing tracked yet is harmless too
    empty = OutputRepository.open_or_init(str(tmp_path / "empty"))
    empty.clear_tracked_files()


def test_snapshot_includes_deletions_and_ignored_files(tmp_path):
    """Test that a snapshot records deletions and ignored files."""
    output = OutputRepository.open_or_init(str(tmp_path / "output"))
    write_files(tmp_path / "output", {"old.html": "old"})
    first = output.commit_everything("build 1")

    output.clear_tracked_files()
    write_files(tmp_path / "output", {".gitignore": "*.html\n", "new.html": "new"})
    second = output.commit_everything("build 2")

    changes = git(output.root_dir, "diff", "--no-renames", "--name-status", str(first), str(second))
    assert sorted(changes.splitlines()) == ["A\t.gitignore", "A\tnew.html", "D\told.html"]


def test_commit_identity(tmp_path, monkeypatch):
    """Test the configured commit identity."""
    for name in ("GIT_AUTHOR_NAME", "GIT_AUTHOR_EMAIL", "GIT_COMMITTER_NAME", "GIT_COMMITTER_EMAIL"):
        monkeypatch.delenv(name)
    output = OutputRepository.open_or_init(
        str(tmp_path / "output"), author_name="Site Bot", author_email="bot@example.com"
    )
    commit = output.commit_everything("Build output for HEAD")
    assert git(output.root_dir, "log", "-1", "--format=%an <%ae>|%s", str(commit)) == \
        "Site Bot <bot@example.com>|Build output for HEAD"
