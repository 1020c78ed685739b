"""Per-key asyncio locks that are dropped once idle."""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable, List


class KeyedLock:
    """
    One asyncio.Lock per key, created on first use and forgotten when no
    task holds or waits for it, so long-lived services do not accumulate a
    lock for every channel or identity ever seen.
    """

    def __init__(self):
        # Structure: {key: [asyncio.Lock, holders + waiters]}
        self._entries: Dict[Hashable, List] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()
