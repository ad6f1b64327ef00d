"""
DirSync Core - configuration, logging and shared models.
"""

from dirsync.core.config import (
    ConfigValidationError,
    LogLayout,
    StoredConfig,
    SyncConfig,
    load_config,
    validate_config,
)
from dirsync.core.logging import (
    FileSyncLogger,
    MemorySyncLogger,
    SyncLogger,
    get_logger,
    setup_logging,
)
from dirsync.core.models import SyncSession
from dirsync.core.paths import PathPolicy
from dirsync.core.status import OperationOutcome, SyncReport

__all__ = [
    "ConfigValidationError",
    "LogLayout",
    "StoredConfig",
    "SyncConfig",
    "load_config",
    "validate_config",
    "FileSyncLogger",
    "MemorySyncLogger",
    "SyncLogger",
    "get_logger",
    "setup_logging",
    "SyncSession",
    "PathPolicy",
    "OperationOutcome",
    "SyncReport",
]
