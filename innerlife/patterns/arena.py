"""Id-keyed container for one pattern collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Iterator, Optional, TypeVar

from innerlife.patterns.schemas import CreatedBy, Pattern

P = TypeVar("P", bound=Pattern)


@dataclass
class PatternArena(Generic[P]):
    """Bounded collection of one kind of pattern.

    Every structural change is a single dict operation: records are added,
    swapped for an updated copy, or removed whole.

    Attributes:
        max_size: Capacity enforced by the library after every add/evolve pass
    """

    max_size: int
    _entries: dict[str, P] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pattern_id: str) -> bool:
        return pattern_id in self._entries

    def __iter__(self) -> Iterator[P]:
        return iter(list(self._entries.values()))

    def add(self, pattern: P) -> P:
        """Insert a new record.

        Raises:
            ValueError: If the id is already present
        """
        if pattern.id in self._entries:
            raise ValueError(f"Pattern '{pattern.id}' already exists")
        self._entries[pattern.id] = pattern
        return pattern

    def get(self, pattern_id: str) -> Optional[P]:
        return self._entries.get(pattern_id)

    def replace(self, pattern: P) -> bool:
        """Swap in an updated copy of an existing record. Returns False if absent."""
        if pattern.id not in self._entries:
            return False
        self._entries[pattern.id] = pattern
        return True

    def remove(self, pattern_id: str) -> bool:
        """Remove a record. Returns True if removed."""
        if pattern_id in self._entries:
            del self._entries[pattern_id]
            return True
        return False

    def ids(self) -> list[str]:
        return list(self._entries)

    def overflow(self) -> int:
        return max(0, len(self._entries) - self.max_size)

    def count_initial(self) -> int:
        return sum(1 for p in self._entries.values() if p.created_by == CreatedBy.INITIAL)

    def clear(self) -> None:
        self._entries.clear()
