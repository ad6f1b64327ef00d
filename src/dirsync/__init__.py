"""
DirSync - One-way directory mirroring with session archiving.

Mirrors a source directory tree into a replica on a recurring schedule,
optionally keeping replaced or removed replica content in a timestamped
archive instead of deleting it.
"""

__version__ = "1.0.0"
__author__ = "DirSync Team"

from dirsync.core.config import StoredConfig, SyncConfig
from dirsync.sync.engine import SyncEngine
from dirsync.sync.scheduler import SyncScheduler

__all__ = ["StoredConfig", "SyncConfig", "SyncEngine", "SyncScheduler", "__version__"]
