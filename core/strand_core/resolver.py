"""Archive URL resolution for plugins."""

from __future__ import annotations

import re
from typing import assert_never
from urllib.parse import urlparse

from .errors import ResolveError
from .models import ArchivePlugin, GitProvider, GitRepo, Plugin

# Characters that would change the meaning of a URL built by string templating.
_UNSAFE_SEGMENT = re.compile(r"[\s\x00-\x1f\x7f?#]")


def _check_segment(label: str, value: str, *, allow_slash: bool = False) -> None:
    if not value:
        raise ResolveError(f"empty {label} in plugin spec")
    if _UNSAFE_SEGMENT.search(value) or (not allow_slash and "/" in value):
        raise ResolveError(f"invalid character in {label}: {value!r}")


def git_archive_url(repo: GitRepo) -> str:
    """Build the provider-specific tarball URL for a Git repository."""
    _check_segment("user", repo.user)
    _check_segment("repo", repo.repo)
    # Refs such as feature/foo legitimately contain slashes.
    _check_segment("git ref", repo.git_ref, allow_slash=True)

    user, name, ref = repo.user, repo.repo, repo.git_ref
    match repo.provider:
        case GitProvider.GITHUB:
            return f"https://codeload.github.com/{user}/{name}/tar.gz/{ref}"
        case GitProvider.GITLAB:
            return f"https://gitlab.com/{user}/{name}/-/archive/{ref}/{user}-{ref}.tar.gz"
        case GitProvider.BITBUCKET:
            return f"https://bitbucket.org/{user}/{name}/get/{ref}.tar.gz"
        case _:
            assert_never(repo.provider)


def resolve_url(plugin: Plugin) -> str:
    """Resolve a plugin to the URL of its archive.

    Pure and deterministic: equal plugins always resolve to identical URLs.

    Args:
        plugin: The plugin to resolve.

    Returns:
        Absolute URL of a gzip-compressed tarball.

    Raises:
        ResolveError: If the plugin does not yield a valid URL.
    """
    match plugin:
        case GitRepo():
            url = git_archive_url(plugin)
        case ArchivePlugin():
            url = plugin.url
        case _:
            assert_never(plugin)

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ResolveError(f"invalid URL {url!r}: {e}") from e
    if not (parsed.scheme and parsed.hostname):
        raise ResolveError(f"not an absolute URL: {url!r}")
    return url
