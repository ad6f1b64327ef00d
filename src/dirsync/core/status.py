"""
DirSync operation status aggregation.

Each sync phase collects the outcomes of many independent sub-operations.
A single failure marks the phase failed but never stops the remaining
sub-operations from running.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class OperationOutcome:
    """Aggregate result of the independent sub-operations of one phase."""

    name: str
    failures: list[str] = field(default_factory=list)
    mutations: int = 0

    @property
    def success(self) -> bool:
        return not self.failures

    def record(self, ok: bool, description: str) -> bool:
        """Record a sub-operation result and return it unchanged."""
        if ok:
            self.mutations += 1
        else:
            self.failures.append(description)
        return ok

    def fail(self, description: str) -> None:
        self.failures.append(description)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "success": self.success,
            "mutations": self.mutations,
            "failures": list(self.failures),
        }


@dataclass
class SyncReport:
    """Result of one sync session: the ordered phase outcomes."""

    session_id: str
    archive_enabled: bool
    started_at: datetime
    ended_at: datetime | None = None
    phases: list[OperationOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(phase.success for phase in self.phases)

    @property
    def mutated(self) -> bool:
        return any(phase.mutations for phase in self.phases)

    @property
    def total_mutations(self) -> int:
        return sum(phase.mutations for phase in self.phases)

    @property
    def failures(self) -> list[str]:
        return [failure for phase in self.phases for failure in phase.failures]

    @property
    def duration_seconds(self) -> float | None:
        if self.ended_at:
            return (self.ended_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "archive_enabled": self.archive_enabled,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "phases": [phase.to_dict() for phase in self.phases],
            "summary": {
                "mutations": self.total_mutations,
                "failures": len(self.failures),
            },
        }
