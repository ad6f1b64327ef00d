"""
Local filesystem implementation and content hashing.
"""

from __future__ import annotations

import hashlib
import os
import shutil
from pathlib import Path
from typing import BinaryIO

from dirsync.platform.base import FileSystem

HASH_CHUNK_SIZE = 1024 * 1024


class LocalFileSystem(FileSystem):
    """
    Filesystem access backed by ``os`` and ``shutil``.

    Symbolic links are never followed while walking. A link is reported as
    a file entry whatever it points to, so links in the replica are pruned
    or replaced like any other stray file. Reading or copying a source link
    uses the content of its target.
    """

    def walk_dirs(self, root: Path) -> list[Path]:
        dirs: list[Path] = []
        for dirpath, dirnames, _ in os.walk(root):
            current = Path(dirpath)
            dirs.extend(
                current / name for name in sorted(dirnames) if not (current / name).is_symlink()
            )
        return dirs

    def walk_files(self, root: Path) -> list[Path]:
        files: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            # os.walk lists links to directories with the directories.
            linked_dirs = [name for name in dirnames if (current / name).is_symlink()]
            files.extend(current / name for name in sorted(filenames + linked_dirs))
        return files

    def list_dir(self, path: Path) -> list[Path]:
        return sorted(path.iterdir())

    def is_dir(self, path: Path) -> bool:
        return path.is_dir() and not path.is_symlink()

    def is_link(self, path: Path) -> bool:
        return path.is_symlink()

    def open_read(self, path: Path) -> BinaryIO:
        return path.open("rb")

    def make_dirs(self, path: Path) -> None:
        if path.is_symlink():
            raise FileExistsError(f"Symbolic link in the way: {path}")
        path.mkdir(parents=True, exist_ok=True)

    def move(self, source: Path, destination: Path) -> None:
        if destination.exists() or destination.is_symlink():
            raise FileExistsError(f"Destination already exists: {destination}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(destination))

    def copy_file(self, source: Path, destination: Path) -> None:
        # A dangling link does not "exist" and would be written through.
        if destination.exists() or destination.is_symlink():
            raise FileExistsError(f"Destination already exists: {destination}")
        if not self.is_dir(destination.parent):
            raise FileNotFoundError(f"Destination directory does not exist: {destination.parent}")
        shutil.copy2(source, destination)

    def delete_file(self, path: Path) -> None:
        path.unlink()

    def delete_tree(self, path: Path) -> None:
        shutil.rmtree(path)

    def remove_empty_dir(self, path: Path) -> None:
        path.rmdir()


def fingerprint(fs: FileSystem, path: Path, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """
    Compute the SHA-256 digest of a file's full content as lowercase hex.

    Two files are identical in content iff their fingerprints are equal.
    Raises ``OSError`` if the file cannot be opened or fully read.
    """
    digest = hashlib.sha256()
    with fs.open_read(path) as handle:
        while chunk := handle.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()
