"""Tests for plugin spec parsing."""

from __future__ import annotations

import pytest

from strand_core.errors import MissingUserError, PluginParseError, UnknownProviderError
from strand_core.models import ArchivePlugin, GitProvider, GitRepo
from strand_core.spec import is_absolute_url, parse_git_repo, parse_plugin, parse_provider


class TestParseProvider:
    """Tests for parse_provider."""

    @pytest.mark.parametrize(
        ("token", "provider"),
        [
            ("github", GitProvider.GITHUB),
            ("gitlab", GitProvider.GITLAB),
            ("bitbucket", GitProvider.BITBUCKET),
        ],
    )
    def test_known_providers(self, token: str, provider: GitProvider) -> None:
        assert parse_provider(token) is provider

    @pytest.mark.parametrize("token", ["GitHub", "GITLAB", "nope", "", " github"])
    def test_unknown_or_differently_cased(self, token: str) -> None:
        """Provider tokens are matched exactly and case-sensitively."""
        with pytest.raises(UnknownProviderError) as exc_info:
            parse_provider(token)
        assert exc_info.value.token == token


class TestParseGitShorthand:
    """Tests for Git shorthand specs."""

    @pytest.mark.parametrize(
        ("spec", "user", "repo"),
        [
            ("tpope/vim-surround", "tpope", "vim-surround"),
            ("junegunn/fzf.vim", "junegunn", "fzf.vim"),
            ("a/b", "a", "b"),
        ],
    )
    def test_user_repo_defaults(self, spec: str, user: str, repo: str) -> None:
        """user/repo defaults to GitHub and the master ref."""
        assert parse_plugin(spec) == GitRepo(
            provider=GitProvider.GITHUB, user=user, repo=repo, git_ref="master"
        )

    @pytest.mark.parametrize("provider", list(GitProvider))
    def test_provider_and_ref(self, provider: GitProvider) -> None:
        plugin = parse_plugin(f"{provider.value}@alice/tool:v2.1.0")

        assert isinstance(plugin, GitRepo)
        assert plugin.provider is provider
        assert plugin.user == "alice"
        assert plugin.repo == "tool"
        assert plugin.git_ref == "v2.1.0"

    def test_provider_without_ref(self) -> None:
        plugin = parse_plugin("gitlab@bob/lib")
        assert plugin == GitRepo(provider=GitProvider.GITLAB, user="bob", repo="lib")
        assert plugin.git_ref == "master"

    def test_ref_without_provider(self) -> None:
        assert parse_plugin("bob/lib:main") == GitRepo(user="bob", repo="lib", git_ref="main")

    def test_commit_hash_ref(self) -> None:
        plugin = parse_plugin("bob/lib:3f2a9c1")
        assert plugin.git_ref == "3f2a9c1"

    def test_ref_is_everything_after_first_colon(self) -> None:
        plugin = parse_plugin("bob/lib:feature/a:b")
        assert plugin.repo == "lib"
        assert plugin.git_ref == "feature/a:b"

    def test_empty_ref_defaults_to_master(self) -> None:
        """A trailing ':' never produces an empty git_ref."""
        assert parse_plugin("bob/lib:").git_ref == "master"

    def test_repo_keeps_text_after_first_slash(self) -> None:
        plugin = parse_git_repo("bob/group/lib")
        assert plugin.user == "bob"
        assert plugin.repo == "group/lib"

    def test_unknown_provider(self) -> None:
        with pytest.raises(UnknownProviderError) as exc_info:
            parse_plugin("nope@user/repo")

        assert exc_info.value.token == "nope"
        assert "nope" in str(exc_info.value)

    def test_missing_user(self) -> None:
        with pytest.raises(MissingUserError):
            parse_plugin("onlyuser")

    def test_missing_user_after_provider(self) -> None:
        with pytest.raises(MissingUserError):
            parse_plugin("gitlab@onlyuser")

    def test_parse_errors_are_value_errors(self) -> None:
        with pytest.raises(ValueError):
            parse_plugin("onlyuser")
        assert issubclass(UnknownProviderError, PluginParseError)

    def test_surrounding_whitespace_ignored(self) -> None:
        assert parse_plugin("  tpope/vim-repeat\n") == GitRepo(user="tpope", repo="vim-repeat")


class TestParseArchive:
    """Tests for archive URL specs."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/plugin.tar.gz",
            "http://example.com:8080/a/b/c.tar.gz?token=1",
            "https://codeload.github.com/tpope/vim-surround/tar.gz/master",
        ],
    )
    def test_absolute_url_is_archive(self, url: str) -> None:
        assert parse_plugin(url) == ArchivePlugin(url=url)

    def test_url_tried_before_shorthand(self) -> None:
        """An absolute URL containing '@' and ':' is still an archive."""
        url = "https://user@example.com/x/y.tar.gz"
        assert parse_plugin(url) == ArchivePlugin(url=url)

    @pytest.mark.parametrize(
        "text",
        ["user/repo", "gitlab@bob/lib:main", "bob/lib:main", "onlyuser", "foo:bar", ""],
    )
    def test_shorthand_is_not_a_url(self, text: str) -> None:
        assert not is_absolute_url(text)
