"""CLI entrypoint for geocoin."""

from __future__ import annotations

import typer
from rich import print

from geocoin.cli import CliGameHandler
from geocoin.config import settings
from geocoin.errors import InvalidCellConfiguration
from geocoin.persistence import JsonFileGameStateStore
from geocoin.telemetry import configure_logging
from geocoin.world import Direction, WorldController

app = typer.Typer(help="Walk the cache grid, collect and deposit coins")


@app.callback()
def main(log_level: str = typer.Option(None, help="Override GEOCOIN_LOG_LEVEL")) -> None:
    configure_logging(log_level or settings.log_level)


def _build_handler() -> CliGameHandler:
    try:
        controller = WorldController(settings.world_config())
    except InvalidCellConfiguration as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=2)
    return CliGameHandler(controller, JsonFileGameStateStore(settings.save_path))


@app.command()
def start() -> None:
    """Show runtime configuration."""
    print(
        {
            "app_name": settings.app_name,
            "tile_size": settings.tile_size,
            "neighborhood_size": settings.neighborhood_size,
            "cache_spawn_probability": settings.cache_spawn_probability,
            "start": [settings.start_lat, settings.start_lng],
            "save_path": settings.save_path,
        }
    )


@app.command()
def status() -> None:
    """Show player position, inventory and nearby caches."""
    handler = _build_handler()
    print(handler.status())


@app.command()
def move(
    direction: Direction = typer.Argument(..., help="north/south/east/west"),
    steps: int = typer.Option(1, min=1, help="Tiles to walk"),
) -> None:
    handler = _build_handler()
    cell = handler.move(direction, steps)
    print({"player_cell": f"{cell.i},{cell.j}", "status": handler.controller.inventory.status_text()})


@app.command()
def goto(
    lat: float = typer.Option(..., help="Latitude"),
    lng: float = typer.Option(..., help="Longitude"),
) -> None:
    """Teleport the player, as a geolocation fix would."""
    handler = _build_handler()
    cell = handler.goto(lat, lng)
    print({"player_cell": f"{cell.i},{cell.j}", "live_caches": len(handler.controller.registry)})


@app.command()
def collect(
    cache: str = typer.Option(..., help="Cache cell, e.g. 369894,-1220628"),
    coin: str = typer.Option(..., help="Coin, e.g. 369894,-1220628#0"),
) -> None:
    handler = _build_handler()
    try:
        found = handler.collect(coin, cache)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    print({"collected": found, "status": handler.controller.inventory.status_text()})
    if not found:
        raise typer.Exit(code=1)


@app.command()
def deposit(
    cache: str = typer.Option(..., help="Cache cell, e.g. 369894,-1220628"),
    coin: str = typer.Option(..., help="Coin, e.g. 369894,-1220628#0"),
) -> None:
    handler = _build_handler()
    try:
        found = handler.deposit(coin, cache)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    print({"deposited": found, "status": handler.controller.inventory.status_text()})
    if not found:
        raise typer.Exit(code=1)


@app.command()
def reset() -> None:
    """Throw away the saved game and start over."""
    handler = _build_handler()
    handler.reset()
    print({"reset": True, "player_cell": f"{handler.controller.player_cell.i},{handler.controller.player_cell.j}"})


if __name__ == "__main__":
    app()
