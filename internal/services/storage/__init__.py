"""
Storage service package

This package provides the application-wide entry point to the filesystem
object storage configured in the [storage] config section.
"""

from .service import StorageService

__all__ = ["StorageService"]
