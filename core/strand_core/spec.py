"""Plugin spec parsing.

A plugin spec is either an absolute archive URL::

    https://example.com/plugin.tar.gz

or a Git shorthand::

    [provider@]user/repo[:git_ref]

where ``provider`` is one of ``github`` (the default), ``gitlab`` or
``bitbucket`` and ``git_ref`` defaults to ``master``. URL parsing is tried
first; shorthand never carries a scheme, so it is never mistaken for a URL.
"""

from __future__ import annotations

from urllib.parse import urlparse

from .errors import MissingUserError, UnknownProviderError
from .models import DEFAULT_GIT_REF, ArchivePlugin, GitProvider, GitRepo, Plugin


def parse_provider(token: str) -> GitProvider:
    """Map a provider token to a GitProvider (case-sensitive, exact match).

    Raises:
        UnknownProviderError: If the token names no known provider.
    """
    try:
        return GitProvider(token)
    except ValueError:
        raise UnknownProviderError(token) from None


def is_absolute_url(text: str) -> bool:
    """Return True if ``text`` is an absolute URL with a scheme and a host."""
    try:
        url = urlparse(text)
        host = url.hostname
    except (ValueError, TypeError):
        return False
    return bool(url.scheme) and bool(host)


def parse_archive(text: str) -> ArchivePlugin:
    """Parse an absolute archive URL.

    Raises:
        ValueError: If ``text`` is not an absolute URL.
    """
    if not is_absolute_url(text):
        raise ValueError(f"not an absolute URL: {text!r}")
    return ArchivePlugin(url=text)


def parse_git_repo(text: str) -> GitRepo:
    """Parse Git shorthand of the form ``[provider@]user/repo[:git_ref]``.

    Raises:
        UnknownProviderError: If a provider token is present but unknown.
        MissingUserError: If there is no '/' separating user and repo.
    """
    rest = text

    provider = GitProvider.GITHUB
    token, at, remainder = rest.partition("@")
    if at:
        provider = parse_provider(token)
        rest = remainder

    user, slash, rest = rest.partition("/")
    if not slash:
        raise MissingUserError(text)

    repo, _, git_ref = rest.partition(":")

    return GitRepo(
        provider=provider,
        user=user,
        repo=repo,
        git_ref=git_ref or DEFAULT_GIT_REF,
    )


def parse_plugin(text: str) -> Plugin:
    """Parse a plugin spec string into a Plugin.

    Args:
        text: Archive URL or Git shorthand.

    Returns:
        An ArchivePlugin if ``text`` is an absolute URL, otherwise a GitRepo.

    Raises:
        PluginParseError: If ``text`` is neither a URL nor valid shorthand.
    """
    text = text.strip()
    if is_absolute_url(text):
        return ArchivePlugin(url=text)
    return parse_git_repo(text)
