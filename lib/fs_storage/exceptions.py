"""
Filesystem storage exceptions

This module defines the exception hierarchy for the filesystem object storage.
All storage-related errors inherit from FSStorageError base class.
"""


class FSStorageError(Exception):
    """
    Base exception for all filesystem storage errors.

    Catch this to handle any storage error generically.
    """

    pass


class InvalidNameError(FSStorageError):
    """
    Exception raised when a container name or object path is rejected.

    Raised before any filesystem call is issued when a name:
    - Is empty or absent
    - Contains path separators (container names only)
    - Contains ".." / "." segments, absolute paths or control characters
    - Resolves outside the storage root

    Args:
        message: Description of why the name is invalid
        name: The rejected name
    """

    def __init__(self, message: str, name: str | None = None):
        super().__init__(message)
        self.name = name


class NotFoundError(FSStorageError):
    """
    Exception raised when a container or object does not exist.

    Args:
        message: Description of what was not found
        path: Filesystem path that was looked up
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class ContainerExistsError(FSStorageError):
    """Exception raised when creating a container that already exists."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class PartialIOError(FSStorageError):
    """
    Exception raised when a filesystem call fails in the middle of an operation.

    Recursive operations (listing, removal) abort on the first failure and raise
    this error. A removal that failed partway may already have deleted some
    entries; the caller has to re-invoke or inspect the tree.

    Args:
        message: Description of the failed step
        path: Filesystem path the failing call was issued for
        originalError: The underlying OSError
    """

    def __init__(self, message: str, path: str | None = None, originalError: Exception | None = None):
        super().__init__(message)
        self.path = path
        self.originalError = originalError


class StorageConfigError(FSStorageError):
    """
    Exception raised when storage configuration is invalid.

    Raised during provider or service initialization when:
    - The storage root is not configured
    - The storage root does not exist or is not a directory
    - The service is used before being configured
    """

    pass
