"""Coins, caches and the player inventory."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .grid import Cell, cell_key
from .luck import initial_coin_count


@dataclass(frozen=True, slots=True)
class Coin:
    """A coin is identified by the cell that minted it and its serial there."""

    cell: Cell
    serial: int

    def __post_init__(self) -> None:
        if self.serial < 0:
            raise ValueError(f"Coin serial must be non-negative, got {self.serial}")


def format_coin(coin: Coin) -> str:
    return f"{coin.cell.i}:{coin.cell.j}#{coin.serial}"


@dataclass(slots=True)
class Cache:
    position: Cell
    coins: list[Coin] = field(default_factory=list)

    @classmethod
    def mint(cls, position: Cell) -> Cache:
        """Create the first-ever state of the cache at ``position``."""
        count = initial_coin_count(position)
        return cls(position=position, coins=[Coin(cell=position, serial=serial) for serial in range(count)])

    def add_coin(self, coin: Coin) -> None:
        if coin in self.coins:
            raise ValueError(f"Cache {self.position_key()} already holds {format_coin(coin)}")
        self.coins.append(coin)

    def remove_coin(self, coin: Coin) -> bool:
        for index, held in enumerate(self.coins):
            if held == coin:
                del self.coins[index]
                return True
        return False

    def coin_count(self) -> int:
        return len(self.coins)

    def position_key(self) -> str:
        return cell_key(self.position)


class PlayerInventory:
    """Coins carried by the player, in pick-up order."""

    def __init__(self, coins: Iterable[Coin] = ()) -> None:
        self._coins: list[Coin] = []
        for coin in coins:
            self.add(coin)

    def __len__(self) -> int:
        return len(self._coins)

    def __iter__(self) -> Iterator[Coin]:
        return iter(list(self._coins))

    def __contains__(self, coin: object) -> bool:
        return coin in self._coins

    @property
    def coins(self) -> tuple[Coin, ...]:
        return tuple(self._coins)

    def add(self, coin: Coin) -> None:
        if coin in self._coins:
            raise ValueError(f"Inventory already holds {format_coin(coin)}")
        self._coins.append(coin)

    def remove(self, coin: Coin) -> bool:
        try:
            self._coins.remove(coin)
        except ValueError:
            return False
        return True

    def clear(self) -> None:
        self._coins.clear()

    def status_text(self) -> str:
        if not self._coins:
            return "No coins yet..."
        return f"{len(self._coins)} coins accumulated"
