"""
Recursive removal of directory trees

Deletes a directory and everything below it, depth-first and bottom-up:
every file is unlinked and every subdirectory emptied and removed before the
directory containing it is removed. The walk stops at the first failure
(fail-fast). Entries removed before the failure stay removed.

Symlinks are unlinked, never followed.
"""

import logging
import os
import stat as statModule
from dataclasses import dataclass, field
from typing import List

import aiofiles.os

from . import fsops
from .exceptions import NotFoundError, PartialIOError

logger = logging.getLogger(__name__)


@dataclass
class _RemoveFrame:
    """Directory whose entries are being removed"""

    dirPath: str
    names: List[str]
    index: int = field(default=0)


@dataclass
class RemovalStats:
    """Counters of a finished removal"""

    files: int = 0
    directories: int = 0


async def _readDirectory(dirPath: str) -> List[str]:
    try:
        return await fsops.listDirectory(dirPath)
    except OSError as e:
        raise PartialIOError(f"Failed to read directory '{dirPath}': {e}", path=dirPath, originalError=e) from e


async def removeTree(dirPath: str) -> RemovalStats:
    """
    Remove a directory with all its contents, including the directory itself.

    A missing directory is an error, not a no-op.

    Args:
        dirPath: Directory to remove

    Returns:
        RemovalStats with number of removed files and directories

    Raises:
        NotFoundError: If dirPath does not exist or is not a directory
        PartialIOError: On the first failed read, stat, unlink or rmdir
    """
    try:
        rootNames = await fsops.listDirectory(dirPath)
    except (FileNotFoundError, NotADirectoryError) as e:
        raise NotFoundError(f"Directory not found: {dirPath}", path=dirPath) from e
    except OSError as e:
        raise PartialIOError(f"Failed to read directory '{dirPath}': {e}", path=dirPath, originalError=e) from e

    removed = RemovalStats()
    stack: List[_RemoveFrame] = [_RemoveFrame(dirPath=dirPath, names=rootNames)]

    while stack:
        frame = stack[-1]

        if frame.index >= len(frame.names):
            # All children are gone, directory is empty now
            try:
                await aiofiles.os.rmdir(frame.dirPath)
            except OSError as e:
                raise PartialIOError(
                    f"Failed to remove directory '{frame.dirPath}': {e}", path=frame.dirPath, originalError=e
                ) from e
            removed.directories += 1
            stack.pop()
            continue

        entryPath = os.path.join(frame.dirPath, frame.names[frame.index])
        frame.index += 1

        try:
            entryStat = await fsops.statEntry(entryPath)
        except OSError as e:
            raise PartialIOError(f"Failed to stat '{entryPath}': {e}", path=entryPath, originalError=e) from e

        if statModule.S_ISDIR(entryStat.st_mode):
            stack.append(_RemoveFrame(dirPath=entryPath, names=await _readDirectory(entryPath)))
            continue

        try:
            await aiofiles.os.remove(entryPath)
        except OSError as e:
            raise PartialIOError(f"Failed to remove file '{entryPath}': {e}", path=entryPath, originalError=e) from e
        removed.files += 1

    logger.debug(f"Removed {dirPath}: {removed.files} files, {removed.directories} directories")
    return removed
