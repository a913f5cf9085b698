"""Crawl queue and deduplication ledger."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, Optional, Set

from devdocs.scraper.models import FrontierEntry


class Frontier:
    """FIFO queue of :class:`FrontierEntry` plus the Visited Set.

    A key joins the Visited Set when it is *enqueued*, not when it is
    fetched, so a page linked from two referrers is queued once.  Only the
    crawl loop that owns a frontier may mutate it.
    """

    def __init__(self) -> None:
        self._queue: Deque[FrontierEntry] = deque()
        self._visited: Set[str] = set()

    def push(self, entry: FrontierEntry) -> bool:
        """Enqueue *entry* unless its key was seen before.

        Returns:
            ``True`` if the entry was enqueued.
        """
        key = entry.key
        if key in self._visited:
            return False
        self._visited.add(key)
        self._queue.append(entry)
        return True

    def pop(self) -> Optional[FrontierEntry]:
        """Remove and return the oldest entry, or ``None`` when empty."""
        if not self._queue:
            return None
        return self._queue.popleft()

    def mark_visited(self, key: str) -> bool:
        """Add *key* without enqueueing it.  Returns ``False`` if already seen."""
        if key in self._visited:
            return False
        self._visited.add(key)
        return True

    def seen(self, key: str) -> bool:
        return key in self._visited

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def __iter__(self) -> Iterator[FrontierEntry]:
        return iter(tuple(self._queue))
