"""CLI-side handler wrapping one load -> act -> save cycle per command."""

from __future__ import annotations

from geocoin.events import describe_cache
from geocoin.grid import Cell, cell_key
from geocoin.models import Coin, format_coin
from geocoin.persistence import GameStateStore
from geocoin.world import Direction, WorldController


def parse_coin(text: str, controller: WorldController) -> Coin:
    """Parse ``"i,j#serial"`` (``"i:j#serial"`` is accepted too) into a coin."""
    cell_part, sep, serial_part = text.partition("#")
    if not sep:
        raise ValueError(f"Coin must look like 'i,j#serial', got {text!r}")
    try:
        serial = int(serial_part)
    except ValueError as exc:
        raise ValueError(f"Invalid coin serial in {text!r}") from exc
    return Coin(cell=controller.grid.cell_for_key(cell_part.replace(":", ",")), serial=serial)


class CliGameHandler:
    """Sync facade used by the typer commands."""

    def __init__(self, controller: WorldController, store: GameStateStore) -> None:
        self._controller = controller
        self._store = store
        self.restored = self._controller.load(store)

    @property
    def controller(self) -> WorldController:
        return self._controller

    def save(self) -> None:
        self._controller.save(self._store)

    def move(self, direction: Direction, steps: int = 1) -> Cell:
        cell = self._controller.move(direction, steps)
        self.save()
        return cell

    def goto(self, lat: float, lng: float) -> Cell:
        cell = self._controller.move_to(lat, lng)
        self.save()
        return cell

    def collect(self, coin: str, cache: str) -> bool:
        found = self._controller.collect(parse_coin(coin, self._controller), self._controller.grid.cell_for_key(cache))
        if found:
            self.save()
        return found

    def deposit(self, coin: str, cache: str) -> bool:
        found = self._controller.deposit(parse_coin(coin, self._controller), self._controller.grid.cell_for_key(cache))
        if found:
            self.save()
        return found

    def reset(self) -> None:
        self._controller.reset()
        self.save()

    def status(self) -> dict:
        controller = self._controller
        caches = sorted(controller.registry.list_all(), key=lambda cache: (cache.position.i, cache.position.j))
        return {
            "player": {
                "lat": controller.player_lat,
                "lng": controller.player_lng,
                "cell": cell_key(controller.player_cell),
            },
            "inventory": [format_coin(coin) for coin in controller.inventory],
            "status": controller.inventory.status_text(),
            "caches": [describe_cache(cache) for cache in caches],
            "total_coins": controller.total_coins(),
        }
