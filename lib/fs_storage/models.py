"""
Data models for filesystem object storage, dood!

Containers and stored files are plain snapshots of filesystem metadata taken at
enumeration time. They are built fresh on every call and never track later changes.
"""

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

# Separator used in locations and remote paths regardless of host OS
KEY_SEPARATOR = "/"


def _toDatetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


@dataclass
class Container:
    """Top-level directory under the storage root"""

    name: str
    size: int
    atime: datetime
    mtime: datetime
    ctime: datetime

    @classmethod
    def fromStat(cls, name: str, stat: os.stat_result) -> "Container":
        """Build container descriptor from directory stat"""
        return cls(
            name=name,
            size=stat.st_size,
            atime=_toDatetime(stat.st_atime),
            mtime=_toDatetime(stat.st_mtime),
            ctime=_toDatetime(stat.st_ctime),
        )

    def toDict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size": self.size,
            "atime": self.atime.isoformat(),
            "mtime": self.mtime.isoformat(),
            "ctime": self.ctime.isoformat(),
        }


@dataclass
class StoredFile:
    """Regular file stored somewhere inside a container"""

    container: str
    name: str  # Base name of the file
    location: str  # Subpath from the storage root to the parent dir, starts with container name
    size: int
    atime: datetime
    mtime: datetime
    ctime: datetime

    @classmethod
    def fromStat(cls, container: str, name: str, location: str, stat: os.stat_result) -> "StoredFile":
        """Build file descriptor from file stat"""
        return cls(
            container=container,
            name=name,
            location=location,
            size=stat.st_size,
            atime=_toDatetime(stat.st_atime),
            mtime=_toDatetime(stat.st_mtime),
            ctime=_toDatetime(stat.st_ctime),
        )

    @property
    def path(self) -> str:
        """Full key of the file relative to the storage root"""
        return f"{self.location}{KEY_SEPARATOR}{self.name}"

    @property
    def remote(self) -> str:
        """Path of the file relative to its container"""
        return self.path[len(self.container) + 1 :]

    def toDict(self) -> Dict[str, Any]:
        return {
            "container": self.container,
            "name": self.name,
            "location": self.location,
            "remote": self.remote,
            "size": self.size,
            "atime": self.atime.isoformat(),
            "mtime": self.mtime.isoformat(),
            "ctime": self.ctime.isoformat(),
        }


def containerNameOf(container: "Container | str") -> str:
    """
    Convert a container descriptor or a name into a container name.

    Used at the public boundary only; storage internals always take plain names.
    """
    if isinstance(container, Container):
        return container.name
    return container
