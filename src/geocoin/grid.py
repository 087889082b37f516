"""Flat geographic cell grid with one canonical :class:`Cell` per ``(i, j)``."""

from __future__ import annotations

import math
from dataclasses import dataclass

from geocoin.errors import InvalidCellConfiguration


@dataclass(frozen=True, slots=True)
class Cell:
    """Discrete grid coordinate. Only :class:`CellGrid` should create these."""

    i: int
    j: int


@dataclass(frozen=True, slots=True)
class CellBounds:
    """Latitude/longitude rectangle covered by one cell."""

    south: float
    west: float
    north: float
    east: float

    def center(self) -> tuple[float, float]:
        return (self.south + self.north) / 2, (self.west + self.east) / 2

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat < self.north and self.west <= lng < self.east


def cell_key(cell: Cell) -> str:
    """Canonical ``"i,j"`` position key used by registries, snapshots and saves."""
    return f"{cell.i},{cell.j}"


def parse_cell_key(key: str) -> tuple[int, int]:
    parts = key.split(",")
    if len(parts) != 2:
        raise ValueError(f"Invalid cell key: {key!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Invalid cell key: {key!r}") from exc


class CellGrid:
    """Interns cells so equal coordinates always yield the same instance."""

    def __init__(self, tile_size: float) -> None:
        if not math.isfinite(tile_size) or tile_size <= 0:
            raise InvalidCellConfiguration(f"tile_size must be a positive number, got {tile_size!r}")
        self.tile_size = tile_size
        self._cells: dict[tuple[int, int], Cell] = {}

    def __len__(self) -> int:
        return len(self._cells)

    def get_cell(self, i: int, j: int) -> Cell:
        key = (i, j)
        cell = self._cells.get(key)
        if cell is None:
            cell = Cell(i, j)
            self._cells[key] = cell
        return cell

    def get_cell_from_coordinate(self, lat: float, lng: float) -> Cell:
        return self.get_cell(math.floor(lat / self.tile_size), math.floor(lng / self.tile_size))

    def cell_for_key(self, key: str) -> Cell:
        i, j = parse_cell_key(key)
        return self.get_cell(i, j)

    def bounds(self, cell: Cell) -> CellBounds:
        return CellBounds(
            south=cell.i * self.tile_size,
            west=cell.j * self.tile_size,
            north=(cell.i + 1) * self.tile_size,
            east=(cell.j + 1) * self.tile_size,
        )
