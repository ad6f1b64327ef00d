"""
DirSync session archive management.

Each sync session owns a timestamped directory under the archive root.
Replaced or removed replica content is moved there when archiving is on.
The directory is created eagerly and removed again at the end of the
session if nothing was archived into it.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path, PurePath
from typing import Callable

from dirsync.core.logging import SyncLogger
from dirsync.core.models import SyncSession, make_session_id
from dirsync.platform import FileSystem, LocalFileSystem


class ArchiveManager:
    """Creates and cleans up per-session archive directories."""

    def __init__(
        self,
        archive_root: Path,
        logger: SyncLogger,
        fs: FileSystem | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.archive_root = archive_root
        self.logger = logger
        self.fs = fs or LocalFileSystem()
        self.clock = clock

    def open_session(self, now: datetime | None = None) -> SyncSession:
        """Start a session: create its archive directory and session log."""
        now = now or self.clock()
        base_id = make_session_id(now)
        session_id = base_id
        suffix = 1
        while self._taken(session_id):
            session_id = f"{base_id}_{suffix}"
            suffix += 1

        archive_path = self.archive_root / session_id
        self.fs.make_dirs(archive_path)
        self.logger.begin_session(session_id)
        return SyncSession(session_id=session_id, archive_path=archive_path, started_at=now)

    def _taken(self, session_id: str) -> bool:
        return self.fs.is_dir(self.archive_root / session_id) or self.logger.session_exists(session_id)

    def archive_target(self, session: SyncSession, relative: PurePath) -> Path:
        return session.archive_path / relative

    def close_session(self, session: SyncSession) -> bool:
        """
        Finish a session.

        Discards the session log when nothing was mutated and removes the
        archive directory when its top level is empty. Returns whether the
        archive directory was kept.
        """
        if not session.mutated:
            self.logger.discard_session(session.session_id)

        path = session.archive_path
        try:
            if self.fs.is_dir(path) and not self.fs.list_dir(path):
                self.fs.remove_empty_dir(path)
                return False
        except OSError as e:
            self.logger.error(f"> Failed to remove empty archive directory {path}.")
            self.logger.error(f"Error: {e!r}")
        return self.fs.is_dir(path)
