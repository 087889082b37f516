"""Lossless text snapshots of cache state.

Caches that leave the player's neighborhood are dropped from memory; their
snapshot is kept in a :class:`MementoStore` and decoded again on re-entry.
"""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import MementoFormatError
from .grid import Cell, CellGrid, cell_key
from .models import Cache, Coin


class CellRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    i: int
    j: int

    @classmethod
    def from_cell(cls, cell: Cell) -> CellRecord:
        return cls(i=cell.i, j=cell.j)


class CoinRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    cell: CellRecord
    serial: int = Field(ge=0)

    @classmethod
    def from_coin(cls, coin: Coin) -> CoinRecord:
        return cls(cell=CellRecord.from_cell(coin.cell), serial=coin.serial)

    def to_coin(self, grid: CellGrid) -> Coin:
        return Coin(cell=grid.get_cell(self.cell.i, self.cell.j), serial=self.serial)


def ensure_unique_coins(coins: list[CoinRecord], where: str) -> None:
    seen: set[tuple[int, int, int]] = set()
    for coin in coins:
        identity = (coin.cell.i, coin.cell.j, coin.serial)
        if identity in seen:
            raise ValueError(f"duplicate coin {coin.cell.i}:{coin.cell.j}#{coin.serial} in {where}")
        seen.add(identity)


class CacheSnapshot(BaseModel):
    """Wire shape of one cache memento."""

    model_config = ConfigDict(extra="forbid")

    position: CellRecord
    coins: list[CoinRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _no_duplicate_coins(self) -> CacheSnapshot:
        ensure_unique_coins(self.coins, f"cache {self.position.i},{self.position.j}")
        return self


def to_memento(cache: Cache) -> str:
    snapshot = CacheSnapshot(
        position=CellRecord.from_cell(cache.position),
        coins=[CoinRecord.from_coin(coin) for coin in cache.coins],
    )
    return snapshot.model_dump_json()


def from_memento(snapshot: str, position: Cell, grid: CellGrid) -> Cache:
    """Rebuild the cache recorded in ``snapshot``; coins keep their order."""
    try:
        parsed = CacheSnapshot.model_validate_json(snapshot)
    except ValidationError as exc:
        raise MementoFormatError(f"Invalid cache memento for {cell_key(position)}: {exc}") from exc

    if (parsed.position.i, parsed.position.j) != (position.i, position.j):
        raise MementoFormatError(
            f"Memento records cache {parsed.position.i},{parsed.position.j} but {cell_key(position)} was requested"
        )

    return Cache(
        position=grid.get_cell(position.i, position.j),
        coins=[record.to_coin(grid) for record in parsed.coins],
    )


class MementoStore:
    """Last known snapshot of every cache that has left the live world."""

    def __init__(self) -> None:
        self._snapshots: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, position: Cell) -> bool:
        return cell_key(position) in self._snapshots

    def save(self, cache: Cache) -> str:
        snapshot = to_memento(cache)
        self._snapshots[cache.position_key()] = snapshot
        return snapshot

    def put(self, key: str, snapshot: str) -> None:
        self._snapshots[key] = snapshot

    def get(self, position: Cell) -> str | None:
        return self._snapshots.get(cell_key(position))

    def discard(self, position: Cell) -> None:
        self._snapshots.pop(cell_key(position), None)

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._snapshots.items()))

    def clear(self) -> None:
        self._snapshots.clear()
