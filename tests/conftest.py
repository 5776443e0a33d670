"""
Shared fixtures for grouse tests.

Tests marked with `git` drive a real git binary against throwaway
repositories under tmp_path.
"""

import os
import shutil
import subprocess

import pytest

HAS_GIT = shutil.which("git") is not None

requires_git = pytest.mark.skipif(not HAS_GIT, reason="git is not installed")


@pytest.fixture(autouse=True)
def isolated_git_env(monkeypatch, tmp_path):
    """Keep the user's git configuration out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Author")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_PAGER", "cat")
    # Submodules in tests live at local paths
    monkeypatch.setenv("GIT_CONFIG_COUNT", "2")
    monkeypatch.setenv("GIT_CONFIG_KEY_0", "protocol.file.allow")
    monkeypatch.setenv("GIT_CONFIG_VALUE_0", "always")
    monkeypatch.setenv("GIT_CONFIG_KEY_1", "init.defaultBranch")
    monkeypatch.setenv("GIT_CONFIG_VALUE_1", "main")
    for name in list(os.environ):
        if name.startswith("GROUSE_"):
            monkeypatch.delenv(name)


def git(cwd, *args):
    """Run git in cwd and return its trimmed stdout."""
    completed = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True,
    )
    return completed.stdout.strip()


def write_files(root, files):
    """Write {relative path: content} under root, creating directories."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def commit_all(repo, message):
    """Stage everything in repo, commit, and return the new commit hash."""
    git(repo, "add", "--all")
    git(repo, "commit", "--quiet", "--allow-empty", "-m", message)
    return git(repo, "rev-parse", "HEAD")


def make_repo(path, files=None, message="Initial commit"):
    """Create a repository at path with one commit holding files."""
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "--quiet")
    write_files(path, files or {"README.md": "readme\n"})
    commit_all(path, message)
    return path


def add_submodule(repo, source, path):
    """Register source as a submodule of repo at path."""
    git(repo, "submodule", "--quiet", "add", str(source), path)


def tracked_tree(root):
    """Every file under root, relative, excluding .git entries."""
    found = set()
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d != ".git"]
        for filename in filenames:
            if filename == ".git":
                continue
            found.add(os.path.relpath(os.path.join(dirpath, filename), root))
    return found


@pytest.fixture
def site_repo(tmp_path):
    """A site repository with two commits: x.md, then x.md and y.md."""
    repo = make_repo(tmp_path / "site", {"x.md": "# X\n"}, message="Add x")
    first = git(repo, "rev-parse", "HEAD")
    write_files(repo, {"y.md": "# Y\n"})
    second = commit_all(repo, "Add y")
    return repo, first, second
