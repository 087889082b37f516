"""Notifications sent to the presentation layer when live caches change."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .grid import Cell
from .models import Cache, Coin, format_coin


class CacheEventKind(str, Enum):
    SPAWNED = "spawned"
    DESPAWNED = "despawned"
    UPDATED = "updated"


@dataclass(frozen=True, slots=True)
class CacheEvent:
    """Position and coins of a cache at the time the event was emitted."""

    kind: CacheEventKind
    position: Cell
    coins: tuple[Coin, ...]

    @classmethod
    def of(cls, kind: CacheEventKind, cache: Cache) -> CacheEvent:
        return cls(kind=kind, position=cache.position, coins=tuple(cache.coins))


class CacheListener(Protocol):
    """Receives cache events, e.g. to redraw map markers and popups."""

    def __call__(self, event: CacheEvent) -> None:
        ...


def describe_cache(cache: Cache) -> str:
    coins = ", ".join(format_coin(coin) for coin in cache.coins) or "empty"
    return f"Cache [{cache.position.i},{cache.position.j}]: {coins}"
