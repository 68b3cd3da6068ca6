"""Persisted most-recently-used list of character lookups.

The list is stored JSON-serialized under a single key of a diskcache
key-value store and rewritten on every change.
"""

from __future__ import annotations

import logging
from pathlib import Path

import diskcache
from pydantic import TypeAdapter, ValidationError

from models.app import RecentSearchEntry

logger = logging.getLogger(__name__)

DEFAULT_KEY = "recentSearches"
DEFAULT_MAX_ENTRIES = 4

_ENTRIES_ADAPTER = TypeAdapter(list[RecentSearchEntry])


class RecentSearchStore:
    """Bounded, deduplicated recent searches backed by diskcache."""

    def __init__(
        self,
        store_dir: str | Path,
        key: str = DEFAULT_KEY,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        """Open the store and load any persisted entries.

        Args:
            store_dir: Directory of the diskcache store
            key: Key holding the serialized list
            max_entries: Maximum number of entries kept
        """
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self.key = key
        self.max_entries = max_entries
        self._store = diskcache.Cache(str(self.store_dir))
        self._entries: list[RecentSearchEntry] = self.load()

    @property
    def entries(self) -> list[RecentSearchEntry]:
        """Current entries, most recent first."""
        return list(self._entries)

    def load(self) -> list[RecentSearchEntry]:
        """Read the persisted list; a missing or corrupt value yields an empty list."""
        raw = self._store.get(self.key)
        if raw is None:
            return []
        if not isinstance(raw, str | bytes):
            logger.warning("Discarding recent searches of type %s", type(raw).__name__)
            self._store.delete(self.key)
            return []
        try:
            entries = _ENTRIES_ADAPTER.validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable recent searches: %s", e)
            self._store.delete(self.key)
            return []
        logger.debug("Loaded %d recent searches", len(entries))
        return entries

    def record(self, entry: RecentSearchEntry) -> list[RecentSearchEntry]:
        """Put an entry at the front of the list and persist it.

        An existing entry with the same name (case-insensitive) is replaced.

        Returns:
            Entries that fell off the end of the list, plus a replaced entry
            that was looked up under a different name
        """
        name = entry.name.lower()
        query = entry.lookup_name.lower()
        replaced = [
            e
            for e in self._entries
            if e.name.lower() == name and e.lookup_name.lower() != query
        ]
        entries = [e for e in self._entries if e.name.lower() != name]
        entries.insert(0, entry)
        evicted = replaced + entries[self.max_entries :]
        self._entries = entries[: self.max_entries]
        self._save()
        if evicted:
            logger.debug(
                "Recent searches evicted: %s", ", ".join(e.name for e in evicted)
            )
        return evicted

    def clear(self) -> None:
        """Remove all entries."""
        self._entries = []
        self._save()

    def close(self) -> None:
        """Close the underlying store."""
        self._store.close()

    def _save(self) -> None:
        self._store.set(self.key, _ENTRIES_ADAPTER.dump_json(self._entries).decode())
