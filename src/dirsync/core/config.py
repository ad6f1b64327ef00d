"""
DirSync configuration management.

Provides the persisted (possibly incomplete) configuration, its validation
into a fully populated immutable value, and the derived log layout.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dirsync.core.logging import get_logger
from dirsync.core.paths import PathPolicy

DEFAULT_INTERVAL_SECONDS = 9000
DEFAULT_CONFIG_PATH = Path.home() / ".dirsync" / "config.json"

logger = get_logger(__name__)


class ConfigValidationError(ValueError):
    """Raised when a configuration violates one or more rules."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid configuration:\n" + "\n".join(f">{p}" for p in self.problems))


class LoggingConfig(BaseModel):
    """Configuration for console logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    console_enabled: bool = True
    json_format: bool = False


def _expand(v: str | Path | None) -> Path | None:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return Path(v).expanduser().resolve()


class StoredConfig(BaseModel):
    """Configuration as persisted to JSON; any field may still be missing."""

    source_path: Path | None = None
    replica_path: Path | None = None
    logs_path: Path | None = None
    interval_seconds: int | None = DEFAULT_INTERVAL_SECONDS
    archive_enabled: bool | None = True
    case_sensitive: bool = True
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("source_path", "replica_path", "logs_path", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path | None) -> Path | None:
        return _expand(v)

    @classmethod
    def load(cls, config_path: Path | None = None) -> StoredConfig:
        """Load configuration from file, falling back to defaults."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        if config_path.exists():
            try:
                with open(config_path, encoding="utf-8") as f:
                    data = json.load(f)
                return cls.model_validate(data)
            except (OSError, ValueError, ValidationError) as e:
                logger.warning(
                    "Failed to read config file, using defaults",
                    path=str(config_path),
                    error=str(e),
                )

        return cls()

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

    def merged(self, **overrides: object) -> StoredConfig:
        """Return a copy with every non-``None`` override applied."""
        updates = {key: value for key, value in overrides.items() if value is not None}
        return self.model_validate({**self.model_dump(), **updates})


def validate_config(stored: StoredConfig) -> list[str]:
    """Return every rule the configuration violates (empty when valid)."""
    problems: list[str] = []
    labels = {
        "source_path": "Source directory",
        "replica_path": "Replica directory",
        "logs_path": "Logs directory",
    }

    for field_name, label in labels.items():
        value = getattr(stored, field_name)
        if value is None:
            problems.append(f"{label} path is not provided/empty.")
        elif not value.is_dir():
            problems.append(f"{label} path does not exist: {value}")

    if stored.interval_seconds is None or stored.interval_seconds <= 0:
        problems.append(f"Invalid or missing sync interval: {stored.interval_seconds}")

    if stored.archive_enabled is None:
        problems.append("Archiving flag is not set.")

    if problems:
        return problems

    policy = PathPolicy(case_sensitive=stored.case_sensitive)
    source = cast(Path, stored.source_path)
    replica = cast(Path, stored.replica_path)
    logs = cast(Path, stored.logs_path)

    if policy.same(source, replica):
        problems.append("Source and replica directories cannot be the same.")
    if policy.same(source, logs):
        problems.append("Logs directory cannot be the same as the source directory.")
    if policy.same(replica, logs):
        problems.append("Logs directory cannot be the same as the replica directory.")

    pairs = [
        (source, replica, "Replica directory cannot be inside the source directory."),
        (replica, source, "Source directory cannot be inside the replica directory."),
        (source, logs, "Logs directory cannot be inside the source directory."),
        (logs, source, "Source directory cannot be inside the logs directory."),
        (replica, logs, "Logs directory cannot be inside the replica directory."),
        (logs, replica, "Replica directory cannot be inside the logs directory."),
    ]
    for outer, inner, message in pairs:
        if not policy.same(outer, inner) and policy.is_nested(outer, inner):
            problems.append(message)

    return problems


class SyncConfig(BaseModel):
    """Fully populated, validated and immutable sync configuration."""

    model_config = ConfigDict(frozen=True)

    source_path: Path
    replica_path: Path
    logs_path: Path
    interval_seconds: int = Field(gt=0)
    archive_enabled: bool
    case_sensitive: bool = True

    @classmethod
    def from_stored(cls, stored: StoredConfig) -> SyncConfig:
        """Validate a stored configuration. Raises ``ConfigValidationError``."""
        problems = validate_config(stored)
        if problems:
            raise ConfigValidationError(problems)
        return cls(
            source_path=stored.source_path,
            replica_path=stored.replica_path,
            logs_path=stored.logs_path,
            interval_seconds=stored.interval_seconds,
            archive_enabled=stored.archive_enabled,
            case_sensitive=stored.case_sensitive,
        )

    @property
    def path_policy(self) -> PathPolicy:
        return PathPolicy(case_sensitive=self.case_sensitive)

    @property
    def layout(self) -> LogLayout:
        return LogLayout.from_logs_path(self.logs_path)


@dataclass(frozen=True)
class LogLayout:
    """Directory and file layout derived from the logs path."""

    root: Path
    logs_dir: Path
    error_logs_dir: Path
    archive_dir: Path

    @classmethod
    def from_logs_path(cls, logs_path: Path) -> LogLayout:
        root = logs_path / "DirSync"
        return cls(
            root=root,
            logs_dir=root / "Logs",
            error_logs_dir=root / "Error Logs",
            archive_dir=root / "Archive",
        )

    @property
    def general_log(self) -> Path:
        return self.logs_dir / "Log.txt"

    @property
    def error_log(self) -> Path:
        return self.error_logs_dir / "Error_Log.txt"

    def session_log(self, session_id: str) -> Path:
        return self.logs_dir / f"{session_id}.txt"

    def ensure(self) -> None:
        """Create all required directories."""
        for directory in (self.root, self.archive_dir, self.logs_dir, self.error_logs_dir):
            directory.mkdir(parents=True, exist_ok=True)


def load_config(config_path: Path | None = None) -> StoredConfig:
    """Load or create the stored configuration."""
    return StoredConfig.load(config_path)
