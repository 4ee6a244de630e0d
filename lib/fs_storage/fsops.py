"""
Async filesystem primitives shared by the directory walkers

Thin wrappers over aiofiles.os. They raise plain OSError; the walkers decide how
to translate failures.
"""

import asyncio
import os
from typing import List

import aiofiles.os


async def listDirectory(dirPath: str) -> List[str]:
    """Return entry names of a directory in the order the OS reports them"""
    return await aiofiles.os.listdir(dirPath)


async def statEntry(entryPath: str) -> os.stat_result:
    """Stat a directory entry without following symlinks"""
    return await aiofiles.os.stat(entryPath, follow_symlinks=False)


async def statEntries(dirPath: str, names: List[str]) -> List[os.stat_result]:
    """
    Stat all given entries of a directory concurrently.

    All stat calls are issued at once, results come back in the order of
    `names`, not in completion order.

    Args:
        dirPath: Directory containing the entries
        names: Entry names, as returned by listDirectory()

    Returns:
        List of stat results, one per name, same order

    Raises:
        OSError: The first failure in entry order, after all calls have settled
    """
    if not names:
        return []

    results = await asyncio.gather(
        *(statEntry(os.path.join(dirPath, name)) for name in names),
        return_exceptions=True,
    )

    stats: List[os.stat_result] = []
    for result in results:
        if isinstance(result, BaseException):
            raise result
        stats.append(result)
    return stats
