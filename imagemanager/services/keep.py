"""Survivor selection for duplicate groups."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..core.config import KeepStrategy, coerce_enum
from ..core.models import FileRecord


class KeepSelector(ABC):
    """Picks exactly one member of a duplicate group to keep.

    Every variant breaks ties on the lexicographically smallest path, so
    the choice never depends on scan or completion order.
    """

    @abstractmethod
    def sort_key(self, record: FileRecord) -> tuple:
        """Ordering key; the smallest key survives."""
        ...

    def select(self, members: Sequence[FileRecord]) -> FileRecord:
        if not members:
            raise ValueError("Cannot select a survivor from an empty group")
        return min(members, key=self.sort_key)


class KeepOldest(KeepSelector):
    """Keep the member with the earliest modification time."""

    def sort_key(self, record: FileRecord) -> tuple:
        return (record.mod_time, str(record.path))


class KeepShortestPath(KeepSelector):
    """Keep the member with the shortest path."""

    def sort_key(self, record: FileRecord) -> tuple:
        path = str(record.path)
        return (len(path), path)


_SELECTORS: dict[KeepStrategy, type[KeepSelector]] = {
    KeepStrategy.KEEP_OLDEST: KeepOldest,
    KeepStrategy.KEEP_SHORTEST_PATH: KeepShortestPath,
}


def keep_selector_for(strategy: KeepStrategy | str) -> KeepSelector:
    """Resolve a keep strategy (or its configured name) into a selector.

    Raises:
        ConfigurationError: Unknown strategy name.
    """
    strategy = coerce_enum(KeepStrategy, strategy, "deduplicator.keepStrategy")
    return _SELECTORS[strategy]()
