"""
Tests for scratch clones and checkout.
"""

import os

import pytest
from packaging.version import Version

from grouse.git.capabilities import GitCapabilities
from grouse.git.client import GitClient
from grouse.git.errors import GitError
from grouse.git.repository import open_repository
from grouse.git.worktree import WorktreeState, parse_gitlinks

from conftest import (
    add_submodule,
    commit_all,
    git,
    make_repo,
    requires_git,
    tracked_tree,
    write_files,
)


class TestParseGitlinks:

    def test_only_gitlinks(self):
        """Test that only gitlink entries are returned."""
        output = (
            "100644 " + "a" * 40 + " 0\tREADME.md\0"
            "160000 " + "b" * 40 + " 0\tthemes/ananke\0"
            "100755 " + "c" * 40 + " 0\tbuild.sh\0"
        )
        assert parse_gitlinks(output) == ["themes/ananke"]

    def test_paths_with_spaces(self):
        """Test gitlink paths containing spaces."""
        output = "160000 " + "b" * 40 + " 0\tmy theme\0"
        assert parse_gitlinks(output) == ["my theme"]

    def test_empty(self):
        """Test empty ls-files output."""
        assert parse_gitlinks("") == []


@requires_git
class TestCheckout:

    @pytest.fixture
    def source(self, tmp_path):
        repo_dir = make_repo(tmp_path / "site", {
            "a.md": "a\n",
            "content/b.md": "b\n",
            ".gitignore": "public/\n",
        })
        first = git(repo_dir, "rev-parse", "HEAD")
        git(repo_dir, "rm", "--quiet", "content/b.md")
        write_files(repo_dir, {"c.md": "c\n"})
        second = commit_all(repo_dir, "Replace b with c")
        return open_repository(str(repo_dir)), first, second

    def test_checkout_gives_exact_tracked_files(self, source, tmp_path):
        """Test that checkout gives exactly the tracked files."""
        repo, first, second = source
        clone = repo.shared_clone_to(str(tmp_path / "scratch" / "clone"))

        clone.checkout(repo.resolve_commit(first).commit)
        assert tracked_tree(clone.root_dir) == {"a.md", "content/b.md", ".gitignore"}
        assert clone.state is WorktreeState.CHECKED_OUT

        clone.checkout(repo.resolve_commit(second).commit)
        assert tracked_tree(clone.root_dir) == {"a.md", "c.md", ".gitignore"}
        assert str(clone.checked_out) == second

    def test_checkout_removes_untracked_and_ignored(self, source, tmp_path):
        """Test that checkout removes untracked and ignored files."""
        repo, first, _ = source
        clone = repo.shared_clone_to(str(tmp_path / "clone"))
        commit = repo.resolve_commit(first).commit

        clone.checkout(commit)
        write_files(tmp_path / "clone", {
            "stray.txt": "x",
            "public/index.html": "built",
            "a.md": "modified\n",
        })
        clone.checkout(commit)

        assert tracked_tree(clone.root_dir) == {"a.md", "content/b.md", ".gitignore"}
        assert (tmp_path / "clone" / "a.md").read_text() == "a\n"

    def test_source_working_copy_untouched(self, source, tmp_path):
        """Test that the source working copy is left alone."""
        repo, first, _ = source
        write_files(tmp_path / "site", {"draft.md": "wip\n"})
        clone = repo.shared_clone_to(str(tmp_path / "clone"))
        clone.checkout(repo.resolve_commit(first).commit)

        assert git(repo.root_dir, "status", "--porcelain") == "?? draft.md"
        assert git(repo.root_dir, "rev-parse", "HEAD") == source[2]

    def test_remove_is_idempotent(self, source, tmp_path):
        """Test removing a worktree twice."""
        repo, first, _ = source
        clone = repo.shared_clone_to(str(tmp_path / "clone"))
        clone.remove()
        clone.remove()
        assert not os.path.exists(clone.root_dir)
        assert clone.state is WorktreeState.REMOVED

        with pytest.raises(GitError):
            clone.checkout(repo.resolve_commit(first).commit)

    def test_refuses_to_clone_onto_itself(self, source):
        """Test refusing to clone a repository onto itself."""
        repo, _, _ = source
        with pytest.raises(GitError):
            repo.shared_clone_to(repo.root_dir)


@requires_git
class TestSubmoduleCheckout:
    """A path that is plain files in one commit and a submodule in another."""

    @pytest.fixture
    def source(self, tmp_path):
        theme = make_repo(tmp_path / "theme-src", {"layout.html": "<html>\n"})
        repo_dir = make_repo(tmp_path / "site", {
            "index.md": "i\n",
            "theme/old.html": "old\n",
        })
        files_commit = git(repo_dir, "rev-parse", "HEAD")

        git(repo_dir, "rm", "-r", "--quiet", "theme")
        add_submodule(repo_dir, theme, "theme")
        submodule_commit = commit_all(repo_dir, "Use theme submodule")
        return open_repository(str(repo_dir)), files_commit, submodule_commit

    def test_switching_between_files_and_submodule(self, source, tmp_path):
        """Test switching a path between files and a submodule."""
        repo, files_commit, submodule_commit = source
        clone = repo.recursive_shared_clone_to(str(tmp_path / "scratch" / "clone"))
        files = repo.resolve_commit(files_commit).commit
        submodule = repo.resolve_commit(submodule_commit).commit

        clone.checkout(files)
        assert tracked_tree(clone.root_dir) == {"index.md", "theme/old.html"}
        assert not os.path.exists(os.path.join(clone.root_dir, "theme", ".git"))

        clone.checkout(submodule)
        assert tracked_tree(clone.root_dir) == {"index.md", ".gitmodules", "theme/layout.html"}

        clone.checkout(files)
        assert tracked_tree(clone.root_dir) == {"index.md", "theme/old.html"}

    def test_submodule_absent_at_earlier_commit(self, tmp_path):
        """Test a submodule missing from an earlier commit."""
        theme = make_repo(tmp_path / "theme-src", {"layout.html": "<html>\n"})
        repo_dir = make_repo(tmp_path / "site", {
            "index.md": "i\n",
            ".gitmodules": '[submodule "ghost"]\n\tpath = ghost\n\turl = /nonexistent/ghost\n',
        })
        before = git(repo_dir, "rev-parse", "HEAD")
        add_submodule(repo_dir, theme, "theme")
        after = commit_all(repo_dir, "Add theme")

        repo = open_repository(str(repo_dir))
        clone = repo.recursive_shared_clone_to(str(tmp_path / "clone"))

        clone.checkout(repo.resolve_commit(before).commit)
        assert not os.path.exists(os.path.join(clone.root_dir, "ghost"))
        assert not os.path.exists(os.path.join(clone.root_dir, "theme", "layout.html"))

        clone.checkout(repo.resolve_commit(after).commit)
        assert os.path.isfile(os.path.join(clone.root_dir, "theme", "layout.html"))

    def test_submodule_replaced_by_files_without_absorbgitdirs(self, source, tmp_path):
        """Test that git older than 2.12 leaves no nested repository behind."""
        _, files_commit, submodule_commit = source
        old_git = GitClient(capabilities=GitCapabilities(Version("2.11.0")))
        repo = open_repository(str(tmp_path / "site"), git=old_git)
        clone = repo.recursive_shared_clone_to(str(tmp_path / "clone"))
        theme = os.path.join(clone.root_dir, "theme")

        clone.checkout(repo.resolve_commit(submodule_commit).commit)
        assert os.path.isfile(os.path.join(theme, "layout.html"))

        clone.checkout(repo.resolve_commit(files_commit).commit)
        assert tracked_tree(clone.root_dir) == {"index.md", "theme/old.html"}
        assert sorted(os.listdir(theme)) == ["old.html"]

        clone.checkout(repo.resolve_commit(submodule_commit).commit)
        assert tracked_tree(clone.root_dir) == {"index.md", ".gitmodules", "theme/layout.html"}
