from __future__ import annotations

from collections import deque
from collections.abc import Iterator

from src.domain.entities.history_entry import HistoryEntry


class HistoryBuffer:
    """Recency stack of archived images, newest first.

    Entries are never mutated once pushed. They leave the buffer through
    ``remove`` or, when ``max_entries`` is set, by eviction of the oldest
    inserted entry.
    """

    def __init__(self, entries: list[HistoryEntry] | None = None, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be a positive integer")
        self.max_entries = max_entries
        self._entries: deque[HistoryEntry] = deque()
        # entries are given newest first; push oldest first to keep the order
        for entry in reversed(entries or []):
            self.push(entry)

    def push(self, entry: HistoryEntry) -> HistoryEntry | None:
        """Insert at the front. Returns the evicted entry when the cap is exceeded."""
        if entry.id in self:
            raise ValueError(f"Duplicate history entry id: {entry.id}")
        self._entries.appendleft(entry)
        if self.max_entries is not None and len(self._entries) > self.max_entries:
            return self._entries.pop()
        return None

    def remove(self, entry_id: str) -> HistoryEntry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                self._entries.remove(entry)
                return entry
        return None

    def get(self, entry_id: str) -> HistoryEntry | None:
        return next((e for e in self._entries if e.id == entry_id), None)

    def list(self) -> list[HistoryEntry]:
        return list(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def copy(self) -> HistoryBuffer:
        clone = HistoryBuffer(max_entries=self.max_entries)
        clone._entries = deque(self._entries)
        return clone

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))

    def __contains__(self, entry_id: object) -> bool:
        return any(e.id == entry_id for e in self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HistoryBuffer):
            return NotImplemented
        return self.list() == other.list() and self.max_entries == other.max_entries

    def __repr__(self) -> str:
        return f"HistoryBuffer(ids={[e.id for e in self._entries]!r})"
