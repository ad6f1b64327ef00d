"""
Pytest configuration and fixtures for DirSync tests.
"""

import io
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Callable, Generator

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dirsync.core.config import SyncConfig  # noqa: E402
from dirsync.core.logging import MemorySyncLogger  # noqa: E402
from dirsync.platform.base import FileSystem  # noqa: E402
from dirsync.sync.engine import SyncEngine  # noqa: E402

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45)


class MemoryFileSystem(FileSystem):
    """Simulated directory tree with per-operation failure injection."""

    def __init__(self) -> None:
        self.dirs: set[Path] = set()
        self.files: dict[Path, bytes] = {}
        self.links: set[Path] = set()
        self.failures: set[tuple[str, Path]] = set()

    # ---- test helpers ----

    def fail(self, operation: str, path: Path | str) -> None:
        """Make ``operation`` ("read", "move", "copy", "delete", "mkdir") fail for ``path``."""
        self.failures.add((operation, Path(path)))

    def add_dir(self, path: Path | str) -> None:
        path = Path(path)
        self.dirs.add(path)
        self.dirs.update(path.parents)

    def write(self, path: Path | str, content: str | bytes) -> None:
        path = Path(path)
        self.add_dir(path.parent)
        self.files[path] = content.encode() if isinstance(content, str) else content

    def link(self, path: Path | str, content: str | bytes) -> None:
        """Add a file entry that behaves as a symbolic link to ``content``."""
        self.write(path, content)
        self.links.add(Path(path))

    def read(self, path: Path | str) -> str:
        return self.files[Path(path)].decode()

    def tree(self, root: Path | str) -> dict[str, str]:
        """Relative path to content for every file below ``root``."""
        root = Path(root)
        return {
            path.relative_to(root).as_posix(): data.decode()
            for path, data in self.files.items()
            if root in path.parents
        }

    def subdirs(self, root: Path | str) -> set[str]:
        root = Path(root)
        return {path.relative_to(root).as_posix() for path in self.dirs if root in path.parents}

    def _check(self, operation: str, path: Path) -> None:
        if (operation, path) in self.failures:
            raise PermissionError(13, "Permission denied", str(path))

    @staticmethod
    def _below(root: Path, path: Path) -> bool:
        return root in path.parents

    # ---- FileSystem ----

    def walk_dirs(self, root: Path) -> list[Path]:
        return sorted(path for path in self.dirs if self._below(root, path))

    def walk_files(self, root: Path) -> list[Path]:
        return sorted(path for path in self.files if self._below(root, path))

    def list_dir(self, path: Path) -> list[Path]:
        return sorted(p for p in (*self.dirs, *self.files) if p.parent == path and p != path)

    def is_dir(self, path: Path) -> bool:
        return path in self.dirs

    def is_link(self, path: Path) -> bool:
        return path in self.links

    def open_read(self, path: Path) -> BinaryIO:
        self._check("read", path)
        if path not in self.files:
            raise FileNotFoundError(2, "No such file", str(path))
        return io.BytesIO(self.files[path])

    def make_dirs(self, path: Path) -> None:
        self._check("mkdir", path)
        if path in self.files:
            raise FileExistsError(17, "File exists", str(path))
        self.add_dir(path)

    def move(self, source: Path, destination: Path) -> None:
        self._check("move", source)
        if destination in self.dirs or destination in self.files:
            raise FileExistsError(17, "File exists", str(destination))
        if source in self.files:
            self.add_dir(destination.parent)
            self.files[destination] = self.files.pop(source)
            if source in self.links:
                self.links.discard(source)
                self.links.add(destination)
            return
        if source not in self.dirs:
            raise FileNotFoundError(2, "No such file", str(source))
        self.add_dir(destination.parent)
        for path in [p for p in self.dirs if p == source or self._below(source, p)]:
            self.dirs.discard(path)
            self.dirs.add(destination / path.relative_to(source))
        for path in [p for p in self.files if self._below(source, p)]:
            self.files[destination / path.relative_to(source)] = self.files.pop(path)

    def copy_file(self, source: Path, destination: Path) -> None:
        self._check("copy", destination)
        if destination in self.files or destination in self.dirs:
            raise FileExistsError(17, "File exists", str(destination))
        if destination.parent not in self.dirs:
            raise FileNotFoundError(2, "No such directory", str(destination.parent))
        self.files[destination] = self.files[source]

    def delete_file(self, path: Path) -> None:
        self._check("delete", path)
        if path not in self.files:
            raise FileNotFoundError(2, "No such file", str(path))
        del self.files[path]
        self.links.discard(path)

    def delete_tree(self, path: Path) -> None:
        self._check("delete", path)
        if path not in self.dirs:
            raise FileNotFoundError(2, "No such directory", str(path))
        self.dirs = {p for p in self.dirs if p != path and not self._below(path, p)}
        self.files = {p: d for p, d in self.files.items() if not self._below(path, p)}
        self.links &= self.files.keys()

    def remove_empty_dir(self, path: Path) -> None:
        if self.list_dir(path):
            raise OSError(39, "Directory not empty", str(path))
        self.dirs.discard(path)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    """An in-memory tree with empty source, replica and logs roots."""
    fs = MemoryFileSystem()
    for root in ("/data/source", "/data/replica", "/data/logs/DirSync/Archive"):
        fs.add_dir(root)
    return fs


@pytest.fixture
def memory_logger() -> MemorySyncLogger:
    return MemorySyncLogger()


@pytest.fixture
def make_engine(
    memory_fs: MemoryFileSystem, memory_logger: MemorySyncLogger
) -> Callable[..., SyncEngine]:
    """Build a sync engine over the in-memory tree."""

    def factory(archive_enabled: bool = False, case_sensitive: bool = True) -> SyncEngine:
        config = SyncConfig(
            source_path=Path("/data/source"),
            replica_path=Path("/data/replica"),
            logs_path=Path("/data/logs"),
            interval_seconds=60,
            archive_enabled=archive_enabled,
            case_sensitive=case_sensitive,
        )
        return SyncEngine(config, memory_logger, fs=memory_fs, clock=lambda: FIXED_NOW)

    return factory


@pytest.fixture
def sync_dirs(temp_dir: Path) -> dict[str, Path]:
    """Real source, replica and logs directories under a temporary root."""
    dirs = {name: temp_dir / name for name in ("source", "replica", "logs")}
    for path in dirs.values():
        path.mkdir()
    return dirs


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")
