"""Tests for archive URL resolution."""

from __future__ import annotations

import pytest

from strand_core.errors import ResolveError
from strand_core.models import ArchivePlugin, GitProvider, GitRepo
from strand_core.resolver import resolve_url
from strand_core.spec import parse_plugin


class TestResolveGit:
    """Tests for provider URL templates."""

    def test_github(self) -> None:
        plugin = GitRepo(provider=GitProvider.GITHUB, user="alice", repo="tool", git_ref="v2")
        assert resolve_url(plugin) == "https://codeload.github.com/alice/tool/tar.gz/v2"

    def test_gitlab(self) -> None:
        plugin = GitRepo(provider=GitProvider.GITLAB, user="bob", repo="lib", git_ref="main")
        assert resolve_url(plugin) == "https://gitlab.com/bob/lib/-/archive/main/bob-main.tar.gz"

    def test_bitbucket(self) -> None:
        plugin = GitRepo(provider=GitProvider.BITBUCKET, user="carol", repo="theme", git_ref="1.0")
        assert resolve_url(plugin) == "https://bitbucket.org/carol/theme/get/1.0.tar.gz"

    def test_default_ref(self) -> None:
        assert (
            resolve_url(parse_plugin("tpope/vim-surround"))
            == "https://codeload.github.com/tpope/vim-surround/tar.gz/master"
        )

    def test_ref_with_slash(self) -> None:
        plugin = GitRepo(user="alice", repo="tool", git_ref="feature/fast")
        assert resolve_url(plugin) == "https://codeload.github.com/alice/tool/tar.gz/feature/fast"

    @pytest.mark.parametrize("provider", list(GitProvider))
    def test_deterministic(self, provider: GitProvider) -> None:
        """Equal plugins resolve to identical URLs."""
        first = GitRepo(provider=provider, user="u", repo="r", git_ref="x")
        second = GitRepo(provider=provider, user="u", repo="r", git_ref="x")

        assert resolve_url(first) == resolve_url(second) == resolve_url(first)


class TestResolveArchive:
    """Tests for archive plugins."""

    def test_url_unchanged(self) -> None:
        url = "https://example.com/releases/plugin-1.2.tar.gz?dl=1"
        assert resolve_url(ArchivePlugin(url=url)) == url

    def test_relative_url_rejected(self) -> None:
        with pytest.raises(ResolveError):
            resolve_url(ArchivePlugin(url="plugin.tar.gz"))


class TestResolveErrors:
    """Tests for specs that cannot form a valid URL."""

    @pytest.mark.parametrize(
        ("user", "repo", "git_ref"),
        [
            ("", "repo", "master"),
            ("user", "", "master"),
            ("us er", "repo", "master"),
            ("user", "re?po", "master"),
            ("user", "repo", "v1#frag"),
            ("user", "group/repo", "master"),
            ("user", "repo", "line\nbreak"),
        ],
    )
    def test_invalid_segments(self, user: str, repo: str, git_ref: str) -> None:
        plugin = GitRepo(user=user, repo=repo, git_ref=git_ref)
        with pytest.raises(ResolveError):
            resolve_url(plugin)

    def test_parsed_empty_repo(self) -> None:
        with pytest.raises(ResolveError, match="repo"):
            resolve_url(parse_plugin("user/"))
