"""
Upload and download streams for stored objects

Both streams are async context managers over aiofiles handles:

    async with provider.upload("photos", "2024/cat.jpg") as stream:
        await stream.write(data)
    print(stream.file)  # StoredFile, available once the upload finished

    async with provider.download("photos", "2024/cat.jpg") as stream:
        async for chunk in stream:
            ...
"""

import logging
import os
from typing import Any, AsyncIterator, Optional

import aiofiles
import aiofiles.os

from .ensurer import ensureParentDirectory
from .exceptions import FSStorageError, NotFoundError, PartialIOError
from .models import StoredFile

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_FILE_MODE = 0o644

_WRITE_MODES = ("wb", "ab", "xb")


class UploadStream:
    """
    Writable stream for a single object.

    Opening the stream creates any missing parent directories first, then opens
    the file. The upload is complete once the stream is closed: data is flushed,
    the file is stat'ed and the resulting descriptor is stored in `file`.

    Args:
        filePath: Resolved filesystem path of the object
        containerName: Container the object belongs to
        location: Subpath from the storage root to the object's parent directory
        mode: File open mode, one of "wb" (overwrite), "ab" (append), "xb" (create only)
        fileMode: Permission bits for newly created files (umask applies)
        containerDir: Directory of the container. If given, it must already exist
            when the stream is opened; only directories below it are created.
    """

    def __init__(
        self,
        filePath: str,
        containerName: str,
        location: str,
        mode: str = "wb",
        fileMode: int = DEFAULT_FILE_MODE,
        containerDir: Optional[str] = None,
    ):
        if mode not in _WRITE_MODES:
            raise ValueError(f"Unsupported upload mode: {mode}")

        self.filePath = filePath
        self.containerName = containerName
        self.containerDir = containerDir
        self.location = location
        self.mode = mode
        self.fileMode = fileMode
        self.bytesWritten = 0
        self.file: Optional[StoredFile] = None
        self._handle: Any = None

    def _opener(self, path: str, flags: int) -> int:
        return os.open(path, flags, self.fileMode)

    async def open(self) -> "UploadStream":
        """Create parent directories and open the file for writing"""
        if self._handle is not None:
            raise FSStorageError(f"Upload stream for {self.filePath} is already open")

        # Containers are only made by createContainer
        if self.containerDir is not None and not await aiofiles.os.path.isdir(self.containerDir):
            raise NotFoundError(f"Container not found: {self.containerName}", path=self.containerDir)

        await ensureParentDirectory(self.filePath)
        try:
            self._handle = await aiofiles.open(self.filePath, self.mode, opener=self._opener)
        except OSError as e:
            raise PartialIOError(
                f"Failed to open '{self.filePath}' for writing: {e}", path=self.filePath, originalError=e
            ) from e
        return self

    async def write(self, data: bytes) -> int:
        """Write a chunk of data, returns number of bytes written"""
        if self._handle is None:
            raise FSStorageError(f"Upload stream for {self.filePath} is not open")
        try:
            written = await self._handle.write(data)
        except OSError as e:
            raise PartialIOError(f"Failed to write '{self.filePath}': {e}", path=self.filePath, originalError=e) from e
        self.bytesWritten += written
        return written

    async def abort(self) -> None:
        """Close the file without publishing a descriptor. Data written so far stays on disk."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            await handle.close()
        except OSError as e:
            logger.warning(f"Error while closing aborted upload {self.filePath}: {e}")

    async def close(self) -> StoredFile:
        """
        Flush and close the file, then stat it.

        Returns:
            Descriptor of the stored object

        Raises:
            PartialIOError: If flushing, closing or the final stat fails
        """
        if self._handle is None:
            if self.file is not None:
                return self.file
            raise FSStorageError(f"Upload stream for {self.filePath} is not open")

        handle, self._handle = self._handle, None
        try:
            await handle.flush()
            await handle.close()
            fileStat = await aiofiles.os.stat(self.filePath)
        except OSError as e:
            raise PartialIOError(f"Failed to finish '{self.filePath}': {e}", path=self.filePath, originalError=e) from e

        self.file = StoredFile.fromStat(
            self.containerName, os.path.basename(self.filePath), self.location, fileStat
        )
        logger.debug(f"Uploaded {self.bytesWritten} bytes to {self.filePath}")
        return self.file

    async def __aenter__(self) -> "UploadStream":
        return await self.open()

    async def __aexit__(self, excType, excValue, traceback) -> None:
        if excType is None:
            await self.close()
        else:
            await self.abort()


class DownloadStream:
    """
    Readable stream for a single object.

    Reads never create paths. A missing object is reported on open.

    Args:
        filePath: Resolved filesystem path of the object
        chunkSize: Chunk size used when iterating over the stream
    """

    def __init__(self, filePath: str, chunkSize: int = DEFAULT_CHUNK_SIZE):
        self.filePath = filePath
        self.chunkSize = chunkSize
        self._handle: Any = None

    async def open(self) -> "DownloadStream":
        """Open the file for reading"""
        if self._handle is not None:
            raise FSStorageError(f"Download stream for {self.filePath} is already open")
        try:
            self._handle = await aiofiles.open(self.filePath, "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise NotFoundError(f"Object not found: {self.filePath}", path=self.filePath) from e
        except OSError as e:
            raise PartialIOError(
                f"Failed to open '{self.filePath}' for reading: {e}", path=self.filePath, originalError=e
            ) from e
        return self

    async def read(self, size: int = -1) -> bytes:
        """Read up to size bytes, everything left if size is negative"""
        if self._handle is None:
            raise FSStorageError(f"Download stream for {self.filePath} is not open")
        try:
            return await self._handle.read(size)
        except OSError as e:
            raise PartialIOError(f"Failed to read '{self.filePath}': {e}", path=self.filePath, originalError=e) from e

    async def close(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        await handle.close()

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.read(self.chunkSize)
            if not chunk:
                break
            yield chunk

    async def __aenter__(self) -> "DownloadStream":
        return await self.open()

    async def __aexit__(self, excType, excValue, traceback) -> None:
        await self.close()
