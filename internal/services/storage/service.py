"""
Storage service: Singleton service for filesystem object storage

This module provides a singleton service that owns the configured
FSStorageProvider and exposes its operations to the rest of the application.
"""

import logging
import threading
from typing import TYPE_CHECKING, AsyncIterable, List, Union

from lib.fs_storage import (
    Container,
    DownloadStream,
    FSStorageProvider,
    StorageConfigError,
    StoredFile,
    UploadStream,
    containerNameOf,
)
from lib.fs_storage.streams import DEFAULT_CHUNK_SIZE, DEFAULT_FILE_MODE

if TYPE_CHECKING:
    from internal.config.manager import ConfigManager

logger = logging.getLogger(__name__)

ContainerRef = Union[Container, str]


class StorageService:
    """
    Singleton service for object storage operations.

    The provider is configured at initialization time through the injectConfig
    method. Container arguments accept either a name or a Container descriptor;
    they are converted to names here, before reaching the provider.

    Usage:
        storage = StorageService.getInstance()
        storage.injectConfig(configManager)

        await storage.createContainer("c1")
        await storage.uploadBytes("c1", "a/b.txt", b"hi")
        files = await storage.getFiles("c1")
        await storage.destroyContainer("c1")

    Thread Safety:
        The singleton instance creation is thread-safe using RLock.
        Storage operations are coroutines and must run on an event loop.
    """

    _instance: Union["StorageService", None] = None
    _lock = threading.RLock()

    def __new__(cls) -> "StorageService":
        """
        Create or return singleton instance with thread safety.

        Returns:
            The singleton StorageService instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
            return cls._instance

    def __init__(self):
        """
        Initialize storage service.

        Only runs once due to singleton pattern.
        """
        if not hasattr(self, "initialized"):
            self.provider: FSStorageProvider | None = None
            self.initialized = False
            logger.info("StorageService created, awaiting configuration, dood!")

    @classmethod
    def getInstance(cls) -> "StorageService":
        """
        Get singleton instance.

        Returns:
            The singleton StorageService instance
        """
        return cls()

    def injectConfig(self, configManager: "ConfigManager") -> None:
        """
        Initialize service with configuration from ConfigManager.

        Args:
            configManager: The configuration manager containing storage settings

        Raises:
            StorageConfigError: If configuration is invalid or the provider cannot be created

        Configuration format:
            {
                "root": "./storage",
                "create-root": false,
                "chunk-size": 65536
            }
        """
        try:
            config = configManager.getStorageConfig()

            if not config:
                raise StorageConfigError("Storage configuration is missing")

            root = config.get("root")
            if not root:
                raise StorageConfigError("Storage root is not specified")

            chunkSize = int(config.get("chunk-size", DEFAULT_CHUNK_SIZE))
            if chunkSize <= 0:
                raise StorageConfigError(f"Invalid chunk-size: {chunkSize}")

            self.provider = FSStorageProvider(
                root,
                createRoot=bool(config.get("create-root", False)),
                chunkSize=chunkSize,
            )
            self.initialized = True
            logger.info(f"StorageService initialized with root: {self.provider.root}, dood!")

        except StorageConfigError:
            raise
        except Exception as e:
            raise StorageConfigError(f"Failed to initialize storage service: {e}") from e

    def _getProvider(self) -> FSStorageProvider:
        """
        Return the configured provider.

        Raises:
            StorageConfigError: If service is not initialized
        """
        if not self.initialized or self.provider is None:
            raise StorageConfigError("StorageService is not initialized. Call injectConfig() first, dood!")
        return self.provider

    def getChunkSize(self) -> int:
        """Chunk size configured for stream copies"""
        return self._getProvider().chunkSize

    async def getContainers(self) -> List[Container]:
        """List all containers"""
        containers = await self._getProvider().getContainers()
        logger.debug(f"Listed {len(containers)} containers")
        return containers

    async def getContainer(self, container: ContainerRef) -> Container:
        """Get container descriptor, raises NotFoundError if missing"""
        return await self._getProvider().getContainer(containerNameOf(container))

    async def createContainer(self, container: ContainerRef) -> Container:
        """Create a new container"""
        return await self._getProvider().createContainer(containerNameOf(container))

    async def destroyContainer(self, container: ContainerRef) -> None:
        """Remove a container and everything inside it"""
        await self._getProvider().destroyContainer(containerNameOf(container))

    async def getFiles(self, container: ContainerRef) -> List[StoredFile]:
        """
        List all files of a container, including nested ones.

        Args:
            container: Container name or descriptor

        Returns:
            Flat list of file descriptors in traversal order

        Raises:
            StorageConfigError: If service is not initialized
            InvalidNameError: If the container name is invalid
            NotFoundError: If the container does not exist
            PartialIOError: If the listing fails partway
        """
        containerName = containerNameOf(container)
        files = await self._getProvider().getFiles(containerName)
        logger.debug(f"Listed {len(files)} files in container {containerName}, dood!")
        return files

    async def getFile(self, container: ContainerRef, remote: str) -> StoredFile:
        """Get descriptor of a single object"""
        return await self._getProvider().getFile(containerNameOf(container), remote)

    def getUrl(self, container: ContainerRef, remote: str) -> str:
        """Get local filesystem path of an object"""
        return self._getProvider().getUrl(containerNameOf(container), remote)

    async def removeFile(self, container: ContainerRef, remote: str) -> None:
        """Remove a single object"""
        await self._getProvider().removeFile(containerNameOf(container), remote)

    def upload(
        self, container: ContainerRef, remote: str, mode: str = "wb", fileMode: int = DEFAULT_FILE_MODE
    ) -> UploadStream:
        """Create an upload stream, see FSStorageProvider.upload()"""
        return self._getProvider().upload(containerNameOf(container), remote, mode=mode, fileMode=fileMode)

    def download(self, container: ContainerRef, remote: str) -> DownloadStream:
        """Create a download stream, see FSStorageProvider.download()"""
        return self._getProvider().download(containerNameOf(container), remote)

    async def uploadBytes(self, container: ContainerRef, remote: str, data: bytes) -> StoredFile:
        """
        Store an object from memory.

        Missing intermediate directories below an existing container are created.

        Returns:
            Descriptor of the stored object
        """
        storedFile = await self._getProvider().uploadBytes(containerNameOf(container), remote, data)
        logger.debug(f"Stored object {storedFile.path} ({storedFile.size} bytes), dood!")
        return storedFile

    async def uploadFromIterable(
        self, container: ContainerRef, remote: str, chunks: AsyncIterable[bytes]
    ) -> StoredFile:
        """Store an object from an async iterable of chunks"""
        storedFile = await self._getProvider().uploadFromIterable(containerNameOf(container), remote, chunks)
        logger.debug(f"Stored object {storedFile.path} ({storedFile.size} bytes), dood!")
        return storedFile

    async def downloadBytes(self, container: ContainerRef, remote: str) -> bytes:
        """Read a whole object into memory"""
        data = await self._getProvider().downloadBytes(containerNameOf(container), remote)
        logger.debug(f"Retrieved object {containerNameOf(container)}/{remote} ({len(data)} bytes)")
        return data
