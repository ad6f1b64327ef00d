"""
DirSync data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

SESSION_PREFIX = "Sync_Session_"
SESSION_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def make_session_id(now: datetime) -> str:
    """Session identifier derived from a timestamp with second precision."""
    return f"{SESSION_PREFIX}{now.strftime(SESSION_TIMESTAMP_FORMAT)}"


@dataclass
class SyncSession:
    """One run of the sync engine, owning its archive directory."""

    session_id: str
    archive_path: Path
    started_at: datetime = field(default_factory=datetime.now)
    mutated: bool = False

    def mark_mutated(self) -> None:
        self.mutated = True
