"""
DirSync sync module.

Provides the one-way mirroring engine, session archiving and the
periodic scheduler.
"""

from dirsync.sync.archive import ArchiveManager
from dirsync.sync.engine import SyncEngine
from dirsync.sync.scheduler import SyncScheduler

__all__ = ["ArchiveManager", "SyncEngine", "SyncScheduler"]
