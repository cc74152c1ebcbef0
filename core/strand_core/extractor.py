"""Extraction of gzip-compressed tar archives."""

from __future__ import annotations

import asyncio
import io
import tarfile
import zlib
from pathlib import Path

import structlog

from .errors import ExtractError

logger = structlog.get_logger(__name__)


def extract_archive(data: bytes, target_dir: Path) -> Path:
    """Decompress and unpack a .tar.gz byte buffer into ``target_dir``.

    The archive's own directory structure is kept as-is. The ``data``
    extraction filter rejects members that would land outside
    ``target_dir``.

    Args:
        data: Raw bytes of the gzip-compressed tarball.
        target_dir: Directory to unpack into, created if absent.

    Returns:
        The target directory.

    Raises:
        ExtractError: If the archive is corrupt or cannot be written.
    """
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            members = tar.getnames()
            tar.extractall(target_dir, filter="data")
    except (tarfile.TarError, zlib.error, EOFError) as e:
        raise ExtractError(f"Failed to extract archive: {e}") from e
    except OSError as e:
        # gzip.BadGzipFile is an OSError too
        raise ExtractError(f"Failed to extract archive into {target_dir}: {e}") from e

    logger.debug("archive_extracted", target_dir=str(target_dir), members=len(members))
    return target_dir


async def extract_archive_async(data: bytes, target_dir: Path) -> Path:
    """Run extract_archive in a worker thread to avoid blocking the loop."""
    return await asyncio.to_thread(extract_archive, data, target_dir)
