"""
DirSync sync engine.

Mirrors the source tree into the replica tree in five ordered phases:

1. prune replica directories that have no source counterpart
2. recreate source directories missing from the replica
3. remove replica files that have no source counterpart
4. replace replica files whose content differs from the source
5. import source files missing from the replica

Directories are handled before files because every file operation assumes
its parent directory already exists. Every phase re-derives its diff from
the current state of both trees. A failing file or directory operation is
logged and recorded, and the phase carries on with the remaining entries.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path, PurePath
from typing import Callable

from dirsync.core.config import SyncConfig
from dirsync.core.logging import SyncLogger
from dirsync.core.models import SyncSession
from dirsync.core.status import OperationOutcome, SyncReport
from dirsync.platform import FileSystem, LocalFileSystem, fingerprint
from dirsync.sync.archive import ArchiveManager

SEPARATOR = "------------------------------------------------"


class SyncEngine:
    """Computes and applies the diff between the source and replica trees."""

    def __init__(
        self,
        config: SyncConfig,
        logger: SyncLogger,
        fs: FileSystem | None = None,
        archive: ArchiveManager | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.logger = logger
        self.fs = fs or LocalFileSystem()
        self.policy = config.path_policy
        self.clock = clock
        self.archive = archive or ArchiveManager(
            config.layout.archive_dir, logger, self.fs, clock=clock
        )

    @property
    def source(self) -> Path:
        return self.config.source_path

    @property
    def replica(self) -> Path:
        return self.config.replica_path

    @property
    def archiving(self) -> bool:
        return self.config.archive_enabled

    def run(self) -> SyncReport:
        """Run one sync session through all five phases."""
        session = self.archive.open_session(self.clock())
        report = SyncReport(
            session_id=session.session_id,
            archive_enabled=self.archiving,
            started_at=session.started_at,
        )

        self.logger.message("=======================", session=True)
        self.logger.message(f"Starting sync session: {session.session_id}")
        try:
            for phase in (
                self.prune_directories,
                self.recreate_directories,
                self.remove_overhead_files,
                self.replace_edited_files,
                self.import_missing_files,
            ):
                report.phases.append(phase(session))

            self.logger.message(SEPARATOR, session=True)
            self.logger.message(
                f"Was synchronization successful? >> {report.success} <<", session=True
            )
            self.logger.message("================================================", session=True)
        finally:
            self.archive.close_session(session)
            report.ended_at = self.clock()

        return report

    # ==================== Phases ====================

    def prune_directories(self, session: SyncSession) -> OperationOutcome:
        outcome = OperationOutcome("prune_directories")
        self._header(
            "Moving overhead directories to archive..."
            if self.archiving
            else "Deleting overhead directories..."
        )

        source_dirs = self._index(self.source, self.fs.walk_dirs(self.source))
        for replica_dir in self.fs.walk_dirs(self.replica):
            # Already gone together with an overhead ancestor.
            if not self.fs.is_dir(replica_dir):
                continue
            relative = replica_dir.relative_to(self.replica)
            if self.policy.key(relative) in source_dirs:
                continue

            if self.archiving:
                target = self.archive.archive_target(session, relative)
                self._attempt(
                    outcome,
                    session,
                    lambda: self.fs.move(replica_dir, target),
                    f"Moved directory from {replica_dir} to {target}",
                    f"move directory from {replica_dir} to {target}",
                )
            else:
                self._attempt(
                    outcome,
                    session,
                    lambda: self.fs.delete_tree(replica_dir),
                    f"Deleted directory {replica_dir}",
                    f"delete directory {replica_dir}",
                )
        return outcome

    def recreate_directories(self, session: SyncSession) -> OperationOutcome:
        outcome = OperationOutcome("recreate_directories")
        self._header("Recreating missing directories structure...")

        replica_dirs = self._index(self.replica, self.fs.walk_dirs(self.replica))
        for source_dir in self.fs.walk_dirs(self.source):
            relative = source_dir.relative_to(self.source)
            key = self.policy.key(relative)
            if key in replica_dirs:
                continue

            target = self.replica / self._replica_relative(relative, replica_dirs)
            if self._attempt(
                outcome,
                session,
                lambda: self.fs.make_dirs(target),
                f"Created directory {target}",
                f"create directory {target}",
            ):
                replica_dirs[key] = target.relative_to(self.replica)
        return outcome

    def remove_overhead_files(self, session: SyncSession) -> OperationOutcome:
        outcome = OperationOutcome("remove_overhead_files")
        self._header(
            "Moving overhead files to archive..."
            if self.archiving
            else "Deleting overhead files..."
        )

        source_files = self._index(self.source, self.fs.walk_files(self.source))
        for replica_file in self.fs.walk_files(self.replica):
            relative = replica_file.relative_to(self.replica)
            if self.policy.key(relative) in source_files:
                continue
            self._discard_file(outcome, session, replica_file, relative)
        return outcome

    def replace_edited_files(self, session: SyncSession) -> OperationOutcome:
        outcome = OperationOutcome("replace_edited_files")
        self._header(
            "Moving changed files to archive..."
            if self.archiving
            else "Deleting changed files..."
        )

        source_files = self._index(self.source, self.fs.walk_files(self.source))
        for replica_file in self.fs.walk_files(self.replica):
            relative = replica_file.relative_to(self.replica)
            source_relative = source_files.get(self.policy.key(relative))
            if source_relative is None:
                continue
            source_file = self.source / source_relative

            # A link in the replica is replaced by a regular copy.
            try:
                changed = self.fs.is_link(replica_file) or (
                    fingerprint(self.fs, replica_file) != fingerprint(self.fs, source_file)
                )
            except OSError as e:
                self._report_failure(outcome, f"compare file {source_file} with {replica_file}", e)
                continue
            if not changed:
                continue

            if not self.archiving:
                # The fresh copy is brought in by the import phase.
                self._attempt(
                    outcome,
                    session,
                    lambda: self.fs.delete_file(replica_file),
                    f"Deleted file {replica_file}",
                    f"delete file {replica_file}",
                )
                continue

            if not self._discard_file(outcome, session, replica_file, relative):
                continue
            self._attempt(
                outcome,
                session,
                lambda: self.fs.copy_file(source_file, replica_file),
                f"Copied file from {source_file} to {replica_file}",
                f"copy file from {source_file} to {replica_file}",
            )
        return outcome

    def import_missing_files(self, session: SyncSession) -> OperationOutcome:
        outcome = OperationOutcome("import_missing_files")
        self._header("Importing missing files...")

        replica_dirs = self._index(self.replica, self.fs.walk_dirs(self.replica))
        replica_files = self._index(self.replica, self.fs.walk_files(self.replica))
        for source_file in self.fs.walk_files(self.source):
            relative = source_file.relative_to(self.source)
            if self.policy.key(relative) in replica_files:
                continue

            target = self.replica / self._replica_relative(relative, replica_dirs)
            self._attempt(
                outcome,
                session,
                lambda: self.fs.copy_file(source_file, target),
                f"Copied file from {source_file} to {target}",
                f"copy file from {source_file} to {target}",
            )
        return outcome

    # ==================== Helpers ====================

    def _header(self, text: str) -> None:
        self.logger.message(SEPARATOR, session=True)
        self.logger.message(text, session=True)

    def _index(self, root: Path, paths: list[Path]) -> dict[str, PurePath]:
        """Map join keys to paths relative to ``root``."""
        index: dict[str, PurePath] = {}
        for path in paths:
            relative = path.relative_to(root)
            index[self.policy.key(relative)] = relative
        return index

    def _replica_relative(self, relative: PurePath, replica_dirs: dict[str, PurePath]) -> PurePath:
        """Place ``relative`` under the replica's existing spelling of its parent."""
        if relative.parent == PurePath("."):
            return relative
        parent = replica_dirs.get(self.policy.key(relative.parent), relative.parent)
        return parent / relative.name

    def _discard_file(
        self,
        outcome: OperationOutcome,
        session: SyncSession,
        replica_file: Path,
        relative: PurePath,
    ) -> bool:
        """Archive or delete a replica file depending on the archiving setting."""
        if self.archiving:
            target = self.archive.archive_target(session, relative)
            return self._attempt(
                outcome,
                session,
                lambda: self.fs.move(replica_file, target),
                f"Moved file from {replica_file} to {target}",
                f"move file from {replica_file} to {target}",
            )
        return self._attempt(
            outcome,
            session,
            lambda: self.fs.delete_file(replica_file),
            f"Deleted file {replica_file}",
            f"delete file {replica_file}",
        )

    def _attempt(
        self,
        outcome: OperationOutcome,
        session: SyncSession,
        action: Callable[[], None],
        done: str,
        failed: str,
    ) -> bool:
        try:
            action()
        except OSError as e:
            self._report_failure(outcome, failed, e)
            return False

        self.logger.message(f"> {done}.", session=True)
        session.mark_mutated()
        return outcome.record(True, done)

    def _report_failure(self, outcome: OperationOutcome, what: str, error: OSError) -> None:
        self.logger.error(f"> Failed to {what}.")
        self.logger.error(f"Error: {error!r}")
        outcome.fail(what)
