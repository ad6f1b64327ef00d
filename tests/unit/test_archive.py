"""
Tests for dirsync.sync.archive module.
"""

from datetime import datetime
from pathlib import Path, PurePath

from dirsync.sync.archive import ArchiveManager

ARCHIVE_ROOT = Path("/data/logs/DirSync/Archive")
NOW = datetime(2025, 1, 2, 3, 4, 5)


class TestArchiveManager:
    """Tests for ArchiveManager session lifecycle."""

    def test_open_session_creates_directory(self, memory_fs, memory_logger) -> None:
        manager = ArchiveManager(ARCHIVE_ROOT, memory_logger, memory_fs)

        session = manager.open_session(NOW)

        assert session.session_id == "Sync_Session_2025-01-02_03-04-05"
        assert session.archive_path == ARCHIVE_ROOT / session.session_id
        assert memory_fs.is_dir(session.archive_path)
        assert memory_logger.session_id == session.session_id
        assert session.mutated is False

    def test_session_id_unique_within_same_second(self, memory_fs, memory_logger) -> None:
        manager = ArchiveManager(ARCHIVE_ROOT, memory_logger, memory_fs)

        first = manager.open_session(NOW)
        second = manager.open_session(NOW)
        third = manager.open_session(NOW)

        assert second.session_id == f"{first.session_id}_1"
        assert third.session_id == f"{first.session_id}_2"

    def test_uses_clock_when_no_time_given(self, memory_fs, memory_logger) -> None:
        manager = ArchiveManager(ARCHIVE_ROOT, memory_logger, memory_fs, clock=lambda: NOW)
        assert manager.open_session().session_id.endswith("2025-01-02_03-04-05")

    def test_archive_target(self, memory_fs, memory_logger) -> None:
        manager = ArchiveManager(ARCHIVE_ROOT, memory_logger, memory_fs)
        session = manager.open_session(NOW)

        target = manager.archive_target(session, PurePath("sub/file.txt"))

        assert target == session.archive_path / "sub" / "file.txt"

    def test_close_unused_session(self, memory_fs, memory_logger) -> None:
        manager = ArchiveManager(ARCHIVE_ROOT, memory_logger, memory_fs)
        session = manager.open_session(NOW)

        kept = manager.close_session(session)

        assert kept is False
        assert not memory_fs.is_dir(session.archive_path)
        assert session.session_id in memory_logger.discarded

    def test_close_session_with_archived_content(self, memory_fs, memory_logger) -> None:
        manager = ArchiveManager(ARCHIVE_ROOT, memory_logger, memory_fs)
        session = manager.open_session(NOW)
        memory_fs.write(session.archive_path / "sub" / "old.txt", "old")
        session.mark_mutated()

        kept = manager.close_session(session)

        assert kept is True
        assert memory_fs.is_dir(session.archive_path)
        assert memory_logger.discarded == []

    def test_mutated_session_without_archive_keeps_log(self, memory_fs, memory_logger) -> None:
        manager = ArchiveManager(ARCHIVE_ROOT, memory_logger, memory_fs)
        session = manager.open_session(NOW)
        session.mark_mutated()

        kept = manager.close_session(session)

        assert kept is False
        assert not memory_fs.is_dir(session.archive_path)
        assert memory_logger.discarded == []
        assert session.session_id in memory_logger.sessions

    def test_kept_session_log_reserves_id(self, memory_fs, memory_logger) -> None:
        manager = ArchiveManager(ARCHIVE_ROOT, memory_logger, memory_fs)
        first = manager.open_session(NOW)
        first.mark_mutated()
        manager.close_session(first)

        second = manager.open_session(NOW)
        manager.close_session(second)

        assert second.session_id == f"{first.session_id}_1"
        assert first.session_id in memory_logger.sessions
        assert memory_logger.discarded == [second.session_id]


def test_same_second_runs_without_archive_keep_first_log(make_engine, memory_fs, memory_logger) -> None:
    memory_fs.write("/data/source/a.txt", "a")
    engine = make_engine(archive_enabled=False)

    first = engine.run()
    second = engine.run()

    assert first.mutated is True
    assert second.mutated is False
    assert second.session_id != first.session_id
    assert first.session_id in memory_logger.sessions
    assert second.session_id not in memory_logger.sessions
