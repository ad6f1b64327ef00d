"""
DirSync path comparison policy.

Decides when two paths name the same logical item and when one path is
nested inside another. Case sensitivity is an explicit setting rather
than whatever the host filesystem happens to do.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePath


@dataclass(frozen=True)
class PathPolicy:
    """Comparison rules for relative entries and absolute roots."""

    case_sensitive: bool = True

    def key(self, relative: PurePath | str) -> str:
        """Join key for a path relative to a tree root."""
        text = PurePath(relative).as_posix()
        return text if self.case_sensitive else text.casefold()

    def _parts(self, path: Path) -> tuple[str, ...]:
        parts = Path(os.path.abspath(path)).parts
        if self.case_sensitive:
            return parts
        return tuple(part.casefold() for part in parts)

    def same(self, first: Path, second: Path) -> bool:
        return self._parts(first) == self._parts(second)

    def is_nested(self, outer: Path, inner: Path) -> bool:
        """Check whether ``inner`` equals ``outer`` or lives below it."""
        outer_parts = self._parts(outer)
        inner_parts = self._parts(inner)
        return inner_parts[: len(outer_parts)] == outer_parts


CASE_SENSITIVE = PathPolicy(case_sensitive=True)
CASE_INSENSITIVE = PathPolicy(case_sensitive=False)
