"""
lib.fs_storage - Filesystem-backed object storage, dood!

Exposes a local directory tree as an object store: top-level directories are
containers, files nested at any depth inside them are objects.

Core Components:
- FSStorageProvider: Public API for containers, objects and streams
- validator: Container name and object path validation, root containment checks
- ensurer: Creation of missing parent directories before uploads
- lister: Depth-first recursive listing of container contents
- remover: Depth-first bottom-up removal of directory trees

Example Usage:
    >>> from lib.fs_storage import FSStorageProvider
    >>>
    >>> provider = FSStorageProvider("/srv/storage")
    >>> await provider.createContainer("c1")
    >>> await provider.uploadBytes("c1", "a/b.txt", b"hi")
    >>> [f.path for f in await provider.getFiles("c1")]
    ['c1/a/b.txt']
    >>> await provider.destroyContainer("c1")
"""

from .ensurer import ensureDirectory, ensureParentDirectory
from .exceptions import (
    ContainerExistsError,
    FSStorageError,
    InvalidNameError,
    NotFoundError,
    PartialIOError,
    StorageConfigError,
)
from .lister import listContainerDirectory, listFiles
from .models import Container, StoredFile, containerNameOf
from .provider import FSStorageProvider
from .remover import RemovalStats, removeTree
from .streams import DownloadStream, UploadStream
from .validator import (
    isValidContainerName,
    isValidRemotePath,
    resolveContainerPath,
    resolveObjectPath,
    validateContainerName,
    validateRemotePath,
)

__all__ = [
    "FSStorageProvider",
    "Container",
    "StoredFile",
    "containerNameOf",
    "UploadStream",
    "DownloadStream",
    "RemovalStats",
    "ensureDirectory",
    "ensureParentDirectory",
    "listFiles",
    "listContainerDirectory",
    "removeTree",
    "isValidContainerName",
    "isValidRemotePath",
    "validateContainerName",
    "validateRemotePath",
    "resolveContainerPath",
    "resolveObjectPath",
    "FSStorageError",
    "InvalidNameError",
    "NotFoundError",
    "ContainerExistsError",
    "PartialIOError",
    "StorageConfigError",
]
