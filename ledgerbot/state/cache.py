"""Response memoization keyed by tenant and verbatim query text."""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached answer."""

    tenant_id: str
    query_text: str
    data: Any
    human_text: str
    created_at: datetime


class QueryCache:
    """LRU cache of resolved answers.

    Entries stay until ``clear`` is called, unless a ``ttl`` is configured.
    ``max_entries`` bounds memory by evicting the least recently used entry.
    """

    def __init__(
        self,
        max_entries: int | None = 1000,
        ttl: timedelta | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.max_entries = max_entries
        self.ttl = ttl
        self.clock = clock
        self._entries: OrderedDict[tuple[str, str], CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, entry: CacheEntry) -> bool:
        return self.ttl is not None and entry.created_at + self.ttl <= self.clock()

    def get(self, tenant_id: str, query_text: str) -> CacheEntry | None:
        """Look up a cached answer for the exact query text."""
        key = (tenant_id, query_text)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry

    def put(self, tenant_id: str, query_text: str, data: Any, human_text: str) -> CacheEntry:
        """Store an answer, evicting the least recently used entry when full."""
        key = (tenant_id, query_text)
        entry = CacheEntry(
            tenant_id=tenant_id,
            query_text=query_text,
            data=data,
            human_text=human_text,
            created_at=self.clock(),
        )
        self._entries[key] = entry
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted cached answer for tenant {evicted[0]}")
        return entry

    def clear(self, tenant_id: str | None = None) -> int:
        """Drop cached answers, for one tenant or all of them.

        Call after a data re-sync so stale answers are not served.

        Returns:
            Number of entries removed
        """
        if tenant_id is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            keys = [key for key in self._entries if key[0] == tenant_id]
            for key in keys:
                del self._entries[key]
            removed = len(keys)
        logger.info(f"Cleared {removed} cached answers" + (f" for tenant {tenant_id}" if tenant_id else ""))
        return removed

    def sweep(self) -> int:
        """Remove entries past their TTL. A no-op when no TTL is configured."""
        if self.ttl is None:
            return 0
        expired = [key for key, entry in self._entries.items() if self._expired(entry)]
        for key in expired:
            del self._entries[key]
        return len(expired)
