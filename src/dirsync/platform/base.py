"""
DirSync filesystem capability.

Defines the narrow set of filesystem operations the sync engine relies on,
so the engine can run against the local disk or a simulated tree.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO


class FileSystem(ABC):
    """Abstract base class for filesystem access used by the sync engine."""

    # ==================== Enumeration ====================

    @abstractmethod
    def walk_dirs(self, root: Path) -> list[Path]:
        """All real directories below ``root``, parents listed before children."""

    @abstractmethod
    def walk_files(self, root: Path) -> list[Path]:
        """All non-directory entries below ``root``, symbolic links included."""

    @abstractmethod
    def list_dir(self, path: Path) -> list[Path]:
        """Immediate children of ``path``."""

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """Check whether ``path`` is an existing directory and not a link to one."""

    @abstractmethod
    def is_link(self, path: Path) -> bool:
        """Check whether ``path`` is a symbolic link, dangling or not."""

    # ==================== Reading ====================

    @abstractmethod
    def open_read(self, path: Path) -> BinaryIO:
        """Open a file for binary reading. Raises ``OSError`` on failure."""

    # ==================== Mutation ====================

    @abstractmethod
    def make_dirs(self, path: Path) -> None:
        """Create ``path`` and any missing ancestors."""

    @abstractmethod
    def move(self, source: Path, destination: Path) -> None:
        """Move a file or a whole directory tree, creating destination ancestors."""

    @abstractmethod
    def copy_file(self, source: Path, destination: Path) -> None:
        """Copy a file into an existing directory. Never overwrites."""

    @abstractmethod
    def delete_file(self, path: Path) -> None:
        """Delete a single file."""

    @abstractmethod
    def delete_tree(self, path: Path) -> None:
        """Delete a directory with its whole subtree."""

    @abstractmethod
    def remove_empty_dir(self, path: Path) -> None:
        """Remove a directory that has no entries."""

