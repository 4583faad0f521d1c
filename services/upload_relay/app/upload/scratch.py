"""Per-request scratch files for upload bytes."""

import secrets
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import aiofiles.os

from shared.utils.logging import get_logger

logger = get_logger(__name__)


def scratch_path(directory: str | Path) -> Path:
    """Build a collision-free scratch file path (timestamp + random suffix)."""
    return Path(directory) / f"upload-{int(time.time() * 1000)}-{secrets.token_hex(6)}"


async def remove_scratch(path: Path) -> None:
    """Delete a scratch file; failures are logged, never raised."""
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("scratch_cleanup_failed", path=str(path), error=str(e))


@asynccontextmanager
async def scratch_file(data: bytes, directory: str | Path) -> AsyncIterator[Path]:
    """Hold ``data`` in a scratch file for the duration of the block.

    The file is removed on every exit path.
    """
    path = scratch_path(directory)
    try:
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        logger.debug("scratch_file_written", path=str(path), size_bytes=len(data))
        yield path
    finally:
        await remove_scratch(path)


async def read_scratch(path: Path) -> bytes:
    """Read scratch file contents back for transfer."""
    async with aiofiles.open(path, "rb") as f:
        return await f.read()
