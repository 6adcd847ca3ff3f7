"""
A read-through cache written once, and usable from both blocking and async code.

Each backend exposes `get()` / `get_async()`. The cache layer is written against `_await(...)` and `@dual` generates
`Cache.lookup()` and `Cache.lookup_async()` from the single definition below.
"""
import asyncio
from typing import Dict
from typing import Optional

from python_dual_variant import _await
from python_dual_variant import dual


class DictBackend:
    def __init__(self, data: Dict[str, str]) -> None:
        self.data = data
        self.reads = 0

    def get(self, key: str) -> Optional[str]:
        self.reads += 1
        return self.data.get(key)

    async def get_async(self, key: str) -> Optional[str]:
        await asyncio.sleep(0)
        self.reads += 1
        return self.data.get(key)


class Cache:
    def __init__(self, backend: DictBackend) -> None:
        self.backend = backend
        self.entries: Dict[str, Optional[str]] = {}

    @dual
    def lookup(self, key: str) -> Optional[str]:
        if key not in self.entries:
            # only hit the backend on a miss
            self.entries[key] = _await(self.backend.get(key))
        return self.entries[key]

    @dual
    def lookup_many(self, *keys: str) -> Dict[str, Optional[str]]:
        return {key: _await(self.lookup(key)) for key in keys}
