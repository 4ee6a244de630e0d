"""
Recursive listing of container contents

Walks a container depth-first and flattens every regular file found at any depth
into a single list of StoredFile descriptors.

Ordering contract:
- Entries of one directory are processed in the order the OS returns them
  (not sorted, not by stat completion time).
- A subdirectory's files are placed at the subdirectory's position among its
  siblings, before any sibling that follows it.

The walk uses an explicit stack, so nesting depth is not bounded by the
interpreter recursion limit.
"""

import logging
import os
import stat as statModule
from dataclasses import dataclass, field
from typing import List

from . import fsops
from .exceptions import NotFoundError, PartialIOError
from .models import KEY_SEPARATOR, StoredFile
from .validator import resolveContainerPath

logger = logging.getLogger(__name__)


@dataclass
class _DirFrame:
    """Directory that is being walked"""

    dirPath: str
    location: str
    names: List[str]
    stats: List[os.stat_result]
    index: int = field(default=0)


async def _openFrame(dirPath: str, location: str, names: List[str]) -> _DirFrame:
    stats = await fsops.statEntries(dirPath, names)
    return _DirFrame(dirPath=dirPath, location=location, names=names, stats=stats)


async def listContainerDirectory(containerDir: str, containerName: str) -> List[StoredFile]:
    """
    List all regular files under a container directory.

    Symlinks are neither followed nor listed, directories are descended into.

    Args:
        containerDir: Filesystem path of the container directory
        containerName: Name of the container, used as the root of locations

    Returns:
        Flat list of file descriptors in traversal order. Empty container or
        container with only empty subdirectories gives an empty list.

    Raises:
        NotFoundError: If the container directory does not exist
        PartialIOError: If any read or stat fails during the walk. Files collected
            so far are discarded.
    """
    try:
        rootNames = await fsops.listDirectory(containerDir)
    except (FileNotFoundError, NotADirectoryError) as e:
        raise NotFoundError(f"Container not found: {containerName}", path=containerDir) from e
    except OSError as e:
        raise PartialIOError(
            f"Failed to read container '{containerName}': {e}", path=containerDir, originalError=e
        ) from e

    # Entries vanishing after readdir are walk failures, not a missing container
    try:
        rootFrame = await _openFrame(containerDir, containerName, rootNames)
    except OSError as e:
        raise PartialIOError(
            f"Failed to stat entries of '{containerDir}': {e}", path=containerDir, originalError=e
        ) from e

    files: List[StoredFile] = []
    stack: List[_DirFrame] = [rootFrame]

    while stack:
        frame = stack[-1]
        if frame.index >= len(frame.names):
            stack.pop()
            continue

        name = frame.names[frame.index]
        entryStat = frame.stats[frame.index]
        frame.index += 1

        if statModule.S_ISDIR(entryStat.st_mode):
            entryPath = os.path.join(frame.dirPath, name)
            try:
                names = await fsops.listDirectory(entryPath)
                stack.append(await _openFrame(entryPath, f"{frame.location}{KEY_SEPARATOR}{name}", names))
            except OSError as e:
                raise PartialIOError(
                    f"Failed to read directory '{entryPath}': {e}", path=entryPath, originalError=e
                ) from e
        elif statModule.S_ISREG(entryStat.st_mode):
            files.append(StoredFile.fromStat(containerName, name, frame.location, entryStat))

    logger.debug(f"Listed {len(files)} files in container {containerName}")
    return files


async def listFiles(root: str, containerName: str) -> List[StoredFile]:
    """
    Validate a container name and list all files in it recursively.

    Args:
        root: Storage root directory
        containerName: Container to list

    Returns:
        Flat list of file descriptors, see listContainerDirectory()

    Raises:
        InvalidNameError: If the container name is invalid
        NotFoundError: If the container does not exist
        PartialIOError: If the walk fails partway
    """
    containerDir = resolveContainerPath(root, containerName)
    return await listContainerDirectory(containerDir, containerName)
