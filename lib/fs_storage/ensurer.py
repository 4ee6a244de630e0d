"""
Parent directory creation for uploads
"""

import logging
import os

import aiofiles.os

from .exceptions import PartialIOError

logger = logging.getLogger(__name__)


async def ensureDirectory(dirPath: str) -> bool:
    """
    Create a directory and all missing ancestors.

    Args:
        dirPath: Directory that must exist afterwards

    Returns:
        True if something was created, False if the directory already existed

    Raises:
        PartialIOError: If a path component exists but is not a directory,
            or the directory cannot be created
    """
    if await aiofiles.os.path.isdir(dirPath):
        return False

    try:
        await aiofiles.os.makedirs(dirPath, exist_ok=True)
    except OSError as e:
        raise PartialIOError(f"Failed to create directory '{dirPath}': {e}", path=dirPath, originalError=e) from e

    logger.debug(f"Created directory {dirPath}")
    return True


async def ensureParentDirectory(filePath: str) -> str:
    """
    Make sure the parent directory of a file about to be written exists.

    Idempotent: calling it for an existing directory is a no-op.

    Args:
        filePath: Full path of the file that will be written

    Returns:
        The parent directory path

    Raises:
        PartialIOError: If the parent directory cannot be created
    """
    parentDir = os.path.dirname(filePath)
    await ensureDirectory(parentDir)
    return parentDir
