from __future__ import annotations

import json

import pytest

from geocoin.errors import MementoFormatError
from geocoin.grid import CellGrid
from geocoin.memento import MementoStore, from_memento, to_memento
from geocoin.models import Cache, Coin, PlayerInventory, format_coin
from geocoin.registry import CacheRegistry


def _cache(grid: CellGrid) -> Cache:
    home = grid.get_cell(3, 4)
    other = grid.get_cell(-1, 9)
    return Cache(position=home, coins=[Coin(home, 2), Coin(other, 0), Coin(home, 0)])


def test_coin_identity_is_cell_and_serial() -> None:
    grid = CellGrid(1e-4)
    cell = grid.get_cell(1, 2)

    assert Coin(cell, 0) == Coin(grid.get_cell(1, 2), 0)
    assert Coin(cell, 0) != Coin(cell, 1)
    assert format_coin(Coin(cell, 5)) == "1:2#5"
    with pytest.raises(ValueError):
        Coin(cell, -1)


def test_mint_uses_serials_from_zero() -> None:
    grid = CellGrid(1e-4)
    cell = grid.get_cell(0, 0)

    cache = Cache.mint(cell)

    assert 1 <= cache.coin_count() <= 3
    assert cache.coins == [Coin(cell, serial) for serial in range(cache.coin_count())]
    assert cache.position_key() == "0,0"


def test_remove_coin_removes_exactly_one_match() -> None:
    grid = CellGrid(1e-4)
    cache = _cache(grid)
    target = Coin(grid.get_cell(3, 4), 0)

    assert cache.remove_coin(target) is True
    assert cache.remove_coin(target) is False
    assert cache.coin_count() == 2
    assert target not in cache.coins


def test_cache_and_inventory_refuse_duplicate_coins() -> None:
    grid = CellGrid(1e-4)
    cache = _cache(grid)
    duplicate = Coin(grid.get_cell(3, 4), 2)

    with pytest.raises(ValueError):
        cache.add_coin(duplicate)
    with pytest.raises(ValueError):
        PlayerInventory([duplicate, duplicate])


def test_inventory_status_text() -> None:
    grid = CellGrid(1e-4)
    inventory = PlayerInventory()
    assert inventory.status_text() == "No coins yet..."

    inventory.add(Coin(grid.get_cell(0, 0), 0))
    inventory.add(Coin(grid.get_cell(0, 0), 1))

    assert inventory.status_text() == "2 coins accumulated"
    assert inventory.remove(Coin(grid.get_cell(0, 0), 0)) is True
    assert inventory.remove(Coin(grid.get_cell(0, 0), 0)) is False
    assert len(inventory) == 1


def test_memento_round_trip_preserves_position_and_order() -> None:
    grid = CellGrid(1e-4)
    cache = _cache(grid)

    restored = from_memento(to_memento(cache), cache.position, grid)

    assert restored == cache
    assert restored is not cache
    assert restored.position is grid.get_cell(3, 4)
    assert restored.coins[1].cell is grid.get_cell(-1, 9)


def test_memento_of_empty_cache() -> None:
    grid = CellGrid(1e-4)
    cache = Cache(position=grid.get_cell(0, 0))

    restored = from_memento(to_memento(cache), cache.position, grid)

    assert restored.coin_count() == 0


@pytest.mark.parametrize(
    "snapshot",
    [
        "not json",
        "[]",
        json.dumps({"position": {"i": 3, "j": 4}}) + "garbage",
        json.dumps({"position": {"i": 3}, "coins": []}),
        json.dumps({"position": {"i": 3, "j": 4}, "coins": [{"cell": {"i": 3, "j": 4}, "serial": -1}]}),
        json.dumps(
            {
                "position": {"i": 3, "j": 4},
                "coins": [{"cell": {"i": 3, "j": 4}, "serial": 0}, {"cell": {"i": 3, "j": 4}, "serial": 0}],
            }
        ),
        json.dumps({"position": {"i": 9, "j": 9}, "coins": []}),
    ],
)
def test_malformed_memento_raises(snapshot: str) -> None:
    grid = CellGrid(1e-4)

    with pytest.raises(MementoFormatError):
        from_memento(snapshot, grid.get_cell(3, 4), grid)


def test_memento_store_tracks_latest_snapshot() -> None:
    grid = CellGrid(1e-4)
    store = MementoStore()
    cache = _cache(grid)

    store.save(cache)
    cache.remove_coin(cache.coins[0])
    store.save(cache)

    assert cache.position in store
    assert len(store) == 1
    assert from_memento(store.get(cache.position), cache.position, grid).coin_count() == 2
    store.discard(cache.position)
    assert store.get(cache.position) is None


def test_registry_keeps_one_cache_per_cell() -> None:
    grid = CellGrid(1e-4)
    registry = CacheRegistry()
    first = _cache(grid)
    replacement = Cache(position=first.position)

    registry.add(first)
    registry.add(replacement)

    assert len(registry) == 1
    assert registry.get(grid.get_cell(3, 4)) is replacement
    assert registry.list_all() == [replacement]
    assert registry.remove(first.position) is replacement
    assert registry.get(first.position) is None
    assert registry.remove(first.position) is None
