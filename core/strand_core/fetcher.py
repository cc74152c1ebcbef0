"""Archive download with bounded, fixed-interval retry.

Transient failures (connection errors, timeouts, HTTP 5xx and 429) are
retried up to a fixed number of attempts with a constant delay between
them. A missing archive is reported immediately since retrying cannot make
a nonexistent repository or ref appear.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import aiohttp
import structlog

from .errors import ArchiveNotFoundError, FetchError, RetriesExhaustedError
from .models import DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_BACKOFF, DEFAULT_TIMEOUT_SECONDS, Retry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    ProgressSink = Callable[[Retry], Awaitable[None]]

logger = structlog.get_logger(__name__)

USER_AGENT = "strand-plugin-installer/1.0"

# Body served by codeload.github.com for unknown repositories and refs.
NOT_FOUND_BODY = b"404: Not Found"


async def fetch_once(
    session: aiohttp.ClientSession,
    url: str,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> bytes:
    """Perform a single GET request and return the response body.

    Raises:
        ArchiveNotFoundError: On HTTP 404 or a provider not-found body.
        FetchError: On any other failure; ``retryable`` tells whether
            another attempt could succeed.
    """
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    headers = {"User-Agent": USER_AGENT}

    try:
        async with session.get(url, headers=headers, timeout=timeout) as response:
            if response.status == 404:
                raise ArchiveNotFoundError(url)
            if response.status >= 400:
                raise FetchError(
                    f"HTTP error {response.status}: {response.reason}",
                    retryable=response.status >= 500 or response.status == 429,
                )
            body = await response.read()
    except aiohttp.ClientError as e:
        raise FetchError(f"Network error: {e}") from e
    except TimeoutError:
        raise FetchError("Download timed out") from None

    if body.strip() == NOT_FOUND_BODY:
        raise ArchiveNotFoundError(url)
    return body


async def fetch_with_retry(
    url: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff: float = DEFAULT_RETRY_BACKOFF,
    progress_sink: ProgressSink | None = None,
    session: aiohttp.ClientSession | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> bytes:
    """Download ``url``, retrying transient failures.

    Attempts are numbered from 1. When attempt ``n`` fails transiently and
    ``n < max_attempts``, ``Retry(n + 1)`` is sent to ``progress_sink`` and
    the next attempt starts after ``backoff`` seconds.

    Args:
        url: URL to download.
        max_attempts: Total number of attempts, at least 1.
        backoff: Fixed delay between attempts in seconds.
        progress_sink: Awaited with a Retry state before each retry.
        session: Session to use. A temporary one is created if omitted.
        timeout_seconds: Timeout of each individual attempt.

    Returns:
        The response body.

    Raises:
        ArchiveNotFoundError: The archive does not exist (not retried).
        RetriesExhaustedError: Every attempt failed transiently.
        FetchError: A non-retriable HTTP error occurred.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    if backoff < 0:
        raise ValueError(f"backoff must not be negative, got {backoff}")

    if session is None:
        async with aiohttp.ClientSession() as own_session:
            return await fetch_with_retry(
                url,
                max_attempts=max_attempts,
                backoff=backoff,
                progress_sink=progress_sink,
                session=own_session,
                timeout_seconds=timeout_seconds,
            )

    log = logger.bind(url=url)
    last_error: FetchError | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            body = await fetch_once(session, url, timeout_seconds)
        except FetchError as e:
            log.warning(
                "fetch_attempt_failed",
                attempt=attempt,
                max_attempts=max_attempts,
                error=str(e),
                retryable=e.retryable,
            )
            if not e.retryable:
                raise
            last_error = e
        else:
            log.debug("fetch_succeeded", attempt=attempt, bytes=len(body))
            return body

        if attempt < max_attempts:
            if progress_sink is not None:
                await progress_sink(Retry(attempt=attempt + 1))
            await asyncio.sleep(backoff)

    assert last_error is not None
    raise RetriesExhaustedError(url, max_attempts, last_error)
