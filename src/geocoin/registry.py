"""Index of the caches currently materialized around the player."""

from __future__ import annotations

from .grid import Cell, cell_key
from .models import Cache


class CacheRegistry:
    """Live caches keyed by ``"i,j"``; at most one cache per cell."""

    def __init__(self) -> None:
        self._caches: dict[str, Cache] = {}

    def __len__(self) -> int:
        return len(self._caches)

    def __contains__(self, position: Cell) -> bool:
        return cell_key(position) in self._caches

    def add(self, cache: Cache) -> None:
        self._caches[cache.position_key()] = cache

    def get(self, position: Cell) -> Cache | None:
        return self._caches.get(cell_key(position))

    def remove(self, position: Cell) -> Cache | None:
        return self._caches.pop(cell_key(position), None)

    def list_all(self) -> list[Cache]:
        return list(self._caches.values())

    def clear(self) -> None:
        self._caches.clear()
