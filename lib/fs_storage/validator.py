"""
Name and path validation for filesystem storage

This module guards every call site that turns a caller-supplied name into a
filesystem path. Two policies are applied:

- Container names are a single path segment: non-empty, no separators,
  not "." or "..", no control characters.
- Object remote paths may contain "/" separators, but every segment must be
  non-empty, must not be "." or "..", and the path must not be absolute.

Syntactic checks run first and never touch the filesystem. Once a name passes,
the joined path is resolved against the storage root (following symlinks) and
must stay inside it.
"""

import logging
import os

from .exceptions import InvalidNameError
from .models import KEY_SEPARATOR

logger = logging.getLogger(__name__)

# Maximum length of a single path segment (common filesystem limit)
MAX_SEGMENT_LENGTH = 255

_PARENT_SEGMENT = ".."
_CURRENT_SEGMENT = "."


def _hasControlChars(value: str) -> bool:
    return any(ord(char) < 32 or ord(char) == 127 for char in value)


def _isValidSegment(segment: str) -> bool:
    if not segment or len(segment) > MAX_SEGMENT_LENGTH:
        return False
    if segment in (_CURRENT_SEGMENT, _PARENT_SEGMENT):
        return False
    if "/" in segment or "\\" in segment or os.sep in segment:
        return False
    return not _hasControlChars(segment)


def isValidContainerName(name: str | None) -> bool:
    """
    Check if a container name is acceptable.

    Args:
        name: Container name to check

    Returns:
        True if the name is a single safe path segment, False otherwise
    """
    if not name or not isinstance(name, str):
        return False
    return _isValidSegment(name)


def isValidRemotePath(remote: str | None) -> bool:
    """
    Check if an object remote path is acceptable.

    Nested paths like "subfolder/file.txt" are allowed. Rejected are empty paths,
    absolute paths, drive-prefixed paths, backslashes, empty segments
    (including a trailing separator) and any "." or ".." segment.

    Args:
        remote: Object path relative to its container

    Returns:
        True if the path is safe to join under a container, False otherwise
    """
    if not remote or not isinstance(remote, str):
        return False
    if "\\" in remote or os.path.isabs(remote) or os.path.splitdrive(remote)[0]:
        return False
    return all(_isValidSegment(segment) for segment in remote.split(KEY_SEPARATOR))


def validateContainerName(name: str | None) -> str:
    """
    Validate a container name.

    Args:
        name: Container name to validate

    Returns:
        The same name, for call chaining

    Raises:
        InvalidNameError: If the name is empty, contains separators or traversal segments
    """
    if not isValidContainerName(name):
        logger.warning(f"Invalid container name: {name!r}")
        raise InvalidNameError(f"Invalid container name: {name!r}", name=name)
    assert name is not None  # For type checker
    return name


def validateRemotePath(remote: str | None) -> str:
    """
    Validate an object remote path.

    Args:
        remote: Object path relative to its container

    Returns:
        The same path, for call chaining

    Raises:
        InvalidNameError: If the path is empty, absolute or contains traversal segments
    """
    if not isValidRemotePath(remote):
        logger.warning(f"Invalid object path: {remote!r}")
        raise InvalidNameError(f"Invalid object path: {remote!r}", name=remote)
    assert remote is not None  # For type checker
    return remote


def ensureWithin(path: str, baseDir: str, name: str | None = None) -> str:
    """
    Ensure that a path resolves strictly inside a base directory.

    Both paths are resolved with symlinks followed, so a symlink inside the
    storage root that points elsewhere is rejected too.

    Args:
        path: Path to check
        baseDir: Directory the path must stay inside
        name: Caller-supplied name, used for error reporting

    Returns:
        The resolved absolute path

    Raises:
        InvalidNameError: If the path resolves to baseDir itself or outside of it
    """
    resolvedBase = os.path.realpath(baseDir)
    resolved = os.path.realpath(path)
    if resolved == resolvedBase or os.path.commonpath([resolved, resolvedBase]) != resolvedBase:
        logger.warning(f"Path {path} resolves outside of {baseDir}")
        raise InvalidNameError(f"Path resolves outside of storage root: {name!r}", name=name)
    return resolved


def resolveContainerPath(root: str, containerName: str | None) -> str:
    """
    Validate a container name and return its directory path.

    Args:
        root: Storage root directory
        containerName: Container name

    Returns:
        Absolute path of the container directory

    Raises:
        InvalidNameError: If the name is invalid, escapes the root or names a symlink
    """
    name = validateContainerName(containerName)
    resolved = ensureWithin(os.path.join(root, name), root, name)
    # Container entries are never followed, even when the link stays inside the root
    if resolved != os.path.join(os.path.realpath(root), name):
        logger.warning(f"Container {name!r} is a symlink")
        raise InvalidNameError(f"Container is a symlink: {name!r}", name=name)
    return resolved


def resolveObjectPath(root: str, containerName: str | None, remote: str | None) -> str:
    """
    Validate a container name and an object path and return the object's file path.

    Args:
        root: Storage root directory
        containerName: Container name
        remote: Object path relative to the container, may be nested

    The returned path is the one the caller named, not its symlink target, so
    unlinking it removes a link rather than the file it points to. Symlinks are
    only resolved to check that both the parent directory and the target stay
    inside the container.

    Returns:
        Absolute path of the object file

    Raises:
        InvalidNameError: If either name is invalid or the path escapes the container
    """
    containerDir = resolveContainerPath(root, containerName)
    remotePath = validateRemotePath(remote)
    objectPath = os.path.join(containerDir, *remotePath.split(KEY_SEPARATOR))

    parentDir = os.path.realpath(os.path.dirname(objectPath))
    if parentDir != containerDir:
        ensureWithin(parentDir, containerDir, remotePath)
    ensureWithin(objectPath, containerDir, remotePath)
    return objectPath
