"""World controller: player movement, cache spawning and coin transactions."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from pydantic import ValidationError

from .errors import CoinNotFound, InvalidCellConfiguration, MementoFormatError
from .events import CacheEvent, CacheEventKind, CacheListener
from .grid import Cell, CellGrid, cell_key
from .luck import spawns_cache
from .memento import CacheSnapshot, CellRecord, CoinRecord, MementoStore, from_memento
from .models import Cache, Coin, PlayerInventory, format_coin
from .persistence import CacheState, GameData, GameStateStore, PlayerPosition
from .registry import CacheRegistry


@dataclass(frozen=True, slots=True)
class WorldConfig:
    """Grid and spawning parameters; fixed for the lifetime of a saved game."""

    tile_size: float = 1e-4
    neighborhood_size: int = 8
    spawn_probability: float = 0.1
    start_lat: float = 36.98949379578401
    start_lng: float = -122.06277128548504

    def __post_init__(self) -> None:
        if not math.isfinite(self.tile_size) or self.tile_size <= 0:
            raise InvalidCellConfiguration(f"tile_size must be positive, got {self.tile_size!r}")
        if self.neighborhood_size <= 0:
            raise InvalidCellConfiguration(f"neighborhood_size must be positive, got {self.neighborhood_size!r}")
        if not 0.0 <= self.spawn_probability <= 1.0:
            raise InvalidCellConfiguration(
                f"spawn_probability must be within [0, 1], got {self.spawn_probability!r}"
            )


class Direction(str, Enum):
    """One-tile steps, as (latitude, longitude) multipliers."""

    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    @property
    def delta(self) -> tuple[int, int]:
        return _DIRECTION_DELTAS[self]


_DIRECTION_DELTAS = {
    Direction.NORTH: (1, 0),
    Direction.SOUTH: (-1, 0),
    Direction.EAST: (0, 1),
    Direction.WEST: (0, -1),
}


class WorldController:
    """Owns all live game state and keeps it consistent across moves and saves.

    The registry holds the caches around the player. Caches that drift out of
    the neighborhood are snapshotted into the memento store and dropped; when
    the player comes back they are rebuilt from the snapshot instead of being
    minted again, so collected coins never reappear.
    """

    def __init__(self, config: WorldConfig | None = None, *, logger: logging.Logger | None = None) -> None:
        self.config = config or WorldConfig()
        self.grid = CellGrid(self.config.tile_size)
        self.registry = CacheRegistry()
        self.mementos = MementoStore()
        self.inventory = PlayerInventory()
        self.player_lat = self.config.start_lat
        self.player_lng = self.config.start_lng
        self._listeners: list[CacheListener] = []
        self._logger = logger or logging.getLogger("geocoin.world")

    @property
    def player_cell(self) -> Cell:
        return self.grid.get_cell_from_coordinate(self.player_lat, self.player_lng)

    def subscribe(self, listener: CacheListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: CacheListener) -> None:
        self._listeners.remove(listener)

    def neighborhood(self, center: Cell) -> list[Cell]:
        """Cells whose offset from ``center`` lies in ``[-N, N)`` on both axes."""
        size = self.config.neighborhood_size
        return [
            self.grid.get_cell(center.i + di, center.j + dj)
            for di in range(-size, size)
            for dj in range(-size, size)
        ]

    def start(self) -> None:
        """Spawn the neighborhood around the current player position."""
        self.move_to(self.player_lat, self.player_lng)

    def move(self, direction: Direction, steps: int = 1) -> Cell:
        d_lat, d_lng = direction.delta
        return self.move_to(
            self.player_lat + d_lat * steps * self.config.tile_size,
            self.player_lng + d_lng * steps * self.config.tile_size,
        )

    def cell_at(self, lat: float, lng: float) -> Cell:
        """Cell holding ``(lat, lng)``; raises ``ValueError`` for positions off the grid."""
        try:
            return self.grid.get_cell_from_coordinate(lat, lng)
        except (OverflowError, ValueError) as exc:
            raise ValueError(f"Position ({lat!r}, {lng!r}) does not map to a grid cell") from exc

    def move_to(self, lat: float, lng: float) -> Cell:
        """Place the player at ``(lat, lng)`` and rebuild the live neighborhood."""
        center = self.cell_at(lat, lng)
        self.player_lat = lat
        self.player_lng = lng
        cells = self.neighborhood(center)

        visible = set(cells)
        despawned = 0
        for cache in self.registry.list_all():
            if cache.position not in visible:
                self._despawn(cache)
                despawned += 1

        spawned = 0
        for cell in cells:
            if cell in self.registry or not spawns_cache(cell, self.config.spawn_probability):
                continue
            self._spawn(cell)
            spawned += 1

        self._logger.debug(
            "neighborhood_recomputed",
            extra={
                "cell": cell_key(center),
                "spawned": spawned,
                "despawned": despawned,
                "live_caches": len(self.registry),
            },
        )
        return center

    def collect(self, coin: Coin, position: Cell) -> bool:
        """Move ``coin`` from the live cache at ``position`` into the inventory."""
        cache = self.registry.get(position)
        if cache is None:
            self._logger.info("collect_skipped", extra={"cache": cell_key(position), "reason": "cache_not_live"})
            return False
        try:
            self._require_in_cache(cache, coin)
        except CoinNotFound as exc:
            self._logger.info("collect_skipped", extra={"cache": cell_key(position), "reason": str(exc)})
            return False
        self.inventory.add(coin)
        cache.remove_coin(coin)
        self._commit(cache)
        self._logger.info("coin_collected", extra={"coin": format_coin(coin), "cache": cache.position_key()})
        return True

    def deposit(self, coin: Coin, position: Cell) -> bool:
        """Move ``coin`` from the inventory into the live cache at ``position``."""
        cache = self.registry.get(position)
        if cache is None:
            self._logger.info("deposit_skipped", extra={"cache": cell_key(position), "reason": "cache_not_live"})
            return False
        try:
            self._require_in_inventory(coin)
        except CoinNotFound as exc:
            self._logger.info("deposit_skipped", extra={"cache": cell_key(position), "reason": str(exc)})
            return False
        cache.add_coin(coin)
        self.inventory.remove(coin)
        self._commit(cache)
        self._logger.info("coin_deposited", extra={"coin": format_coin(coin), "cache": cache.position_key()})
        return True

    def reset(self) -> None:
        """Return to a fresh game at the configured start coordinate."""
        for cache in self.registry.list_all():
            self.registry.remove(cache.position)
            self._emit(CacheEventKind.DESPAWNED, cache)
        self.mementos.clear()
        self.inventory.clear()
        self.move_to(self.config.start_lat, self.config.start_lng)
        self._logger.info("world_reset", extra={"cell": cell_key(self.player_cell)})

    def snapshot(self) -> GameData:
        """Capture player, inventory and every known cache in one pass."""
        cache_states: dict[str, CacheState] = {}
        for key, memento in self.mementos.items():
            cache_states[key] = CacheState(coins=CacheSnapshot.model_validate_json(memento).coins)
        for cache in self.registry.list_all():
            cache_states[cache.position_key()] = CacheState(
                coins=[CoinRecord.from_coin(coin) for coin in cache.coins]
            )
        return GameData(
            player_position=PlayerPosition(lat=self.player_lat, lng=self.player_lng),
            collected_coins=[CoinRecord.from_coin(coin) for coin in self.inventory],
            cache_states=cache_states,
        )

    def save(self, store: GameStateStore) -> GameData:
        data = self.snapshot()
        store.write(data.model_dump_json())
        self._logger.info(
            "game_saved",
            extra={"caches": len(data.cache_states), "inventory": len(data.collected_coins)},
        )
        return data

    def restore(self, payload: str) -> None:
        """Replace the live world with ``payload``; leaves state untouched on error."""
        try:
            data = GameData.model_validate_json(payload)
        except ValidationError as exc:
            raise MementoFormatError(f"Invalid saved game: {exc}") from exc

        mementos = MementoStore()
        for key, state in data.cache_states.items():
            cell = self.grid.cell_for_key(key)
            snapshot = CacheSnapshot(position=CellRecord.from_cell(cell), coins=state.coins)
            mementos.put(cell_key(cell), snapshot.model_dump_json())
        try:
            self.cell_at(data.player_position.lat, data.player_position.lng)
        except ValueError as exc:
            raise MementoFormatError(f"Invalid saved game: {exc}") from exc
        inventory = PlayerInventory(record.to_coin(self.grid) for record in data.collected_coins)

        for cache in self.registry.list_all():
            self.registry.remove(cache.position)
            self._emit(CacheEventKind.DESPAWNED, cache)
        self.mementos = mementos
        self.inventory = inventory
        self.move_to(data.player_position.lat, data.player_position.lng)
        self._logger.info(
            "game_restored",
            extra={"caches": len(data.cache_states), "inventory": len(inventory)},
        )

    def load(self, store: GameStateStore) -> bool:
        """Restore the stored game, falling back to a fresh one on any problem."""
        try:
            payload = store.read()
        except (OSError, MementoFormatError):
            self._logger.exception("game_load_failed")
            payload = None

        if payload is None:
            self._logger.info("game_load_defaulted", extra={"reason": "no_saved_game"})
            self.reset()
            return False

        try:
            self.restore(payload)
        except MementoFormatError as exc:
            self._logger.warning("game_load_defaulted", extra={"reason": str(exc)})
            self.reset()
            return False
        return True

    def total_coins(self) -> int:
        """Coins held by the player plus every live or snapshotted cache."""
        total = len(self.inventory)
        live = set()
        for cache in self.registry.list_all():
            live.add(cache.position_key())
            total += cache.coin_count()
        for key, memento in self.mementos.items():
            if key not in live:
                total += len(CacheSnapshot.model_validate_json(memento).coins)
        return total

    def _spawn(self, cell: Cell) -> Cache:
        memento = self.mementos.get(cell)
        cache: Cache | None = None
        if memento is not None:
            try:
                cache = from_memento(memento, cell, self.grid)
            except MementoFormatError:
                self._logger.exception("cache_memento_discarded", extra={"cache": cell_key(cell)})
                self.mementos.discard(cell)
        if cache is None:
            cache = Cache.mint(cell)
        self.registry.add(cache)
        self._emit(CacheEventKind.SPAWNED, cache)
        return cache

    def _despawn(self, cache: Cache) -> None:
        self.mementos.save(cache)
        self.registry.remove(cache.position)
        self._emit(CacheEventKind.DESPAWNED, cache)

    # Checks run before either container is touched, so a failed move changes nothing.
    def _require_in_cache(self, cache: Cache, coin: Coin) -> None:
        if coin not in cache.coins:
            raise CoinNotFound(format_coin(coin), f"cache {cache.position_key()}")

    def _require_in_inventory(self, coin: Coin) -> None:
        if coin not in self.inventory:
            raise CoinNotFound(format_coin(coin), "inventory")

    def _commit(self, cache: Cache) -> None:
        self.mementos.save(cache)
        self._emit(CacheEventKind.UPDATED, cache)

    def _emit(self, kind: CacheEventKind, cache: Cache) -> None:
        event = CacheEvent.of(kind, cache)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001 - presentation failures must not corrupt world state.
                self._logger.exception("cache_listener_failed", extra={"kind": kind.value, "cache": cache.position_key()})
