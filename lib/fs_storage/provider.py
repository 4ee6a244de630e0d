"""
Filesystem storage provider

Exposes a local directory as an object store: every directory directly under
the storage root is a container, every regular file at any depth inside a
container is an object addressed by its container name and a "/"-separated
remote path.
"""

import logging
import os
import stat as statModule
from typing import AsyncIterable, List

import aiofiles.os

from . import fsops
from .exceptions import ContainerExistsError, NotFoundError, PartialIOError, StorageConfigError
from .lister import listContainerDirectory
from .models import KEY_SEPARATOR, Container, StoredFile
from .remover import removeTree
from .streams import DEFAULT_CHUNK_SIZE, DEFAULT_FILE_MODE, DownloadStream, UploadStream
from .validator import resolveContainerPath, resolveObjectPath

logger = logging.getLogger(__name__)


class FSStorageProvider:
    """
    Object storage on top of a local directory tree.

    Every read re-walks the filesystem, nothing is cached between calls.
    Names are validated before any filesystem call is made.

    Args:
        root: Storage root directory
        createRoot: Create the root directory if it does not exist
        chunkSize: Chunk size for download iteration and stream copies

    Raises:
        StorageConfigError: If root is empty, missing (and not created) or not a directory

    Example:
        >>> provider = FSStorageProvider("/srv/storage")
        >>> await provider.createContainer("photos")
        >>> await provider.uploadBytes("photos", "2024/cat.jpg", data)
        >>> files = await provider.getFiles("photos")
    """

    def __init__(self, root: str, createRoot: bool = False, chunkSize: int = DEFAULT_CHUNK_SIZE):
        if not root:
            raise StorageConfigError("Storage root is not specified")

        if createRoot:
            try:
                os.makedirs(root, exist_ok=True)
            except OSError as e:
                raise StorageConfigError(f"Failed to create storage root '{root}': {e}") from e

        if not os.path.exists(root):
            raise StorageConfigError(f"Storage root does not exist: {root}")
        if not os.path.isdir(root):
            raise StorageConfigError(f"Storage root is not a directory: {root}")

        self.root = os.path.realpath(root)
        self.chunkSize = chunkSize
        logger.info(f"FSStorageProvider initialized with root {self.root}")

    def _location(self, containerName: str, remote: str) -> str:
        parts = remote.split(KEY_SEPARATOR)
        return KEY_SEPARATOR.join([containerName, *parts[:-1]])

    async def _statContainer(self, containerName: str, containerDir: str) -> Container:
        try:
            dirStat = await aiofiles.os.stat(containerDir)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(f"Container not found: {containerName}", path=containerDir) from e
        except OSError as e:
            raise PartialIOError(
                f"Failed to stat container '{containerName}': {e}", path=containerDir, originalError=e
            ) from e

        if not statModule.S_ISDIR(dirStat.st_mode):
            raise NotFoundError(f"Container not found: {containerName}", path=containerDir)
        return Container.fromStat(containerName, dirStat)

    ###
    # Containers
    ###

    async def getContainers(self) -> List[Container]:
        """
        List all containers.

        Returns:
            Containers in directory-entry order. Plain files and symlinks at the
            root level are skipped.

        Raises:
            PartialIOError: If the root cannot be read or an entry cannot be stat'ed
        """
        try:
            names = await fsops.listDirectory(self.root)
            stats = await fsops.statEntries(self.root, names)
        except OSError as e:
            raise PartialIOError(f"Failed to list containers: {e}", path=self.root, originalError=e) from e

        return [
            Container.fromStat(name, entryStat)
            for name, entryStat in zip(names, stats)
            if statModule.S_ISDIR(entryStat.st_mode)
        ]

    async def getContainer(self, containerName: str) -> Container:
        """
        Get a container descriptor.

        Raises:
            InvalidNameError: If the name is invalid
            NotFoundError: If the container does not exist
        """
        containerDir = resolveContainerPath(self.root, containerName)
        return await self._statContainer(containerName, containerDir)

    async def createContainer(self, containerName: str) -> Container:
        """
        Create a container directory and return its descriptor.

        Raises:
            InvalidNameError: If the name is invalid
            ContainerExistsError: If a container or file with this name already exists
            PartialIOError: If the directory cannot be created
        """
        containerDir = resolveContainerPath(self.root, containerName)
        try:
            await aiofiles.os.mkdir(containerDir)
        except FileExistsError as e:
            raise ContainerExistsError(f"Container already exists: {containerName}", path=containerDir) from e
        except OSError as e:
            raise PartialIOError(
                f"Failed to create container '{containerName}': {e}", path=containerDir, originalError=e
            ) from e

        logger.info(f"Created container {containerName}")
        return await self._statContainer(containerName, containerDir)

    async def destroyContainer(self, containerName: str) -> None:
        """
        Remove a container with all its contents.

        The name is validated before anything is touched, so traversal attempts
        like ".." never reach the filesystem.

        Raises:
            InvalidNameError: If the name is invalid
            NotFoundError: If the container does not exist
            PartialIOError: If the removal fails partway
        """
        containerDir = resolveContainerPath(self.root, containerName)
        try:
            stats = await removeTree(containerDir)
        except NotFoundError as e:
            raise NotFoundError(f"Container not found: {containerName}", path=containerDir) from e

        logger.info(
            f"Destroyed container {containerName} ({stats.files} files, {stats.directories} directories)"
        )

    ###
    # Files
    ###

    async def getFiles(self, containerName: str) -> List[StoredFile]:
        """
        List all files of a container, including those in nested directories.

        Raises:
            InvalidNameError: If the name is invalid
            NotFoundError: If the container does not exist
            PartialIOError: If the walk fails partway
        """
        containerDir = resolveContainerPath(self.root, containerName)
        return await listContainerDirectory(containerDir, containerName)

    async def getFile(self, containerName: str, remote: str) -> StoredFile:
        """
        Get a descriptor of a single object.

        Raises:
            InvalidNameError: If the container name or remote path is invalid
            NotFoundError: If there is no regular file at this path
        """
        filePath = resolveObjectPath(self.root, containerName, remote)
        try:
            fileStat = await aiofiles.os.stat(filePath)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(f"Object not found: {containerName}/{remote}", path=filePath) from e
        except OSError as e:
            raise PartialIOError(f"Failed to stat '{filePath}': {e}", path=filePath, originalError=e) from e

        if not statModule.S_ISREG(fileStat.st_mode):
            raise NotFoundError(f"Object not found: {containerName}/{remote}", path=filePath)
        return StoredFile.fromStat(
            containerName, os.path.basename(filePath), self._location(containerName, remote), fileStat
        )

    def getUrl(self, containerName: str, remote: str) -> str:
        """Return the local filesystem path of an object"""
        return resolveObjectPath(self.root, containerName, remote)

    async def removeFile(self, containerName: str, remote: str) -> None:
        """
        Remove a single object. Parent directories are left in place.

        Raises:
            InvalidNameError: If the container name or remote path is invalid
            NotFoundError: If the object does not exist
            PartialIOError: If the unlink fails (e.g. the path is a directory)
        """
        filePath = resolveObjectPath(self.root, containerName, remote)
        try:
            await aiofiles.os.remove(filePath)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(f"Object not found: {containerName}/{remote}", path=filePath) from e
        except OSError as e:
            raise PartialIOError(f"Failed to remove '{filePath}': {e}", path=filePath, originalError=e) from e
        logger.debug(f"Removed object {containerName}/{remote}")

    ###
    # Streams
    ###

    def upload(
        self, containerName: str, remote: str, mode: str = "wb", fileMode: int = DEFAULT_FILE_MODE
    ) -> UploadStream:
        """
        Create an upload stream for an object.

        Names are validated immediately. When the stream is entered the container
        must exist; missing directories below it are created and the file is opened.

        Raises:
            InvalidNameError: If the container name or remote path is invalid
            NotFoundError: On enter, if the container does not exist
        """
        filePath = resolveObjectPath(self.root, containerName, remote)
        return UploadStream(
            filePath,
            containerName,
            self._location(containerName, remote),
            mode=mode,
            fileMode=fileMode,
            containerDir=resolveContainerPath(self.root, containerName),
        )

    def download(self, containerName: str, remote: str) -> DownloadStream:
        """
        Create a download stream for an object.

        Raises:
            InvalidNameError: If the container name or remote path is invalid
        """
        filePath = resolveObjectPath(self.root, containerName, remote)
        return DownloadStream(filePath, chunkSize=self.chunkSize)

    async def uploadBytes(self, containerName: str, remote: str, data: bytes) -> StoredFile:
        """Store a whole object from memory"""
        stream = self.upload(containerName, remote)
        async with stream:
            await stream.write(data)
        assert stream.file is not None  # For type checker
        return stream.file

    async def uploadFromIterable(
        self, containerName: str, remote: str, chunks: AsyncIterable[bytes]
    ) -> StoredFile:
        """Store an object from an async iterable of chunks"""
        stream = self.upload(containerName, remote)
        async with stream:
            async for chunk in chunks:
                await stream.write(chunk)
        assert stream.file is not None  # For type checker
        return stream.file

    async def downloadBytes(self, containerName: str, remote: str) -> bytes:
        """Read a whole object into memory"""
        chunks = []
        async with self.download(containerName, remote) as stream:
            async for chunk in stream:
                chunks.append(chunk)
        return b"".join(chunks)
