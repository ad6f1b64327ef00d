"""
DirSync filesystem abstraction layer.

Provides the filesystem capability used by the sync engine and the
local-disk implementation of it.
"""

from __future__ import annotations

from dirsync.platform.base import FileSystem
from dirsync.platform.file_ops import LocalFileSystem, fingerprint

__all__ = [
    "FileSystem",
    "LocalFileSystem",
    "fingerprint",
]
