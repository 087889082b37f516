"""Saved game schema and the storage transports that hold it."""

from __future__ import annotations

import math
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import MementoFormatError
from .grid import parse_cell_key
from .memento import CoinRecord, ensure_unique_coins


class PlayerPosition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lat: float
    lng: float

    @field_validator("lat", "lng")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinates must be finite")
        return value


class CacheState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    coins: list[CoinRecord] = Field(default_factory=list)


class GameData(BaseModel):
    """Everything needed to rebuild a game: player, inventory, known caches."""

    model_config = ConfigDict(extra="forbid")

    player_position: PlayerPosition
    collected_coins: list[CoinRecord] = Field(default_factory=list)
    cache_states: dict[str, CacheState] = Field(default_factory=dict)

    @field_validator("cache_states")
    @classmethod
    def _valid_keys(cls, value: dict[str, CacheState]) -> dict[str, CacheState]:
        for key in value:
            i, j = parse_cell_key(key)
            if key != f"{i},{j}":
                raise ValueError(f"cell key {key!r} is not in canonical form")
        return value

    @model_validator(mode="after")
    def _coins_held_once(self) -> GameData:
        ensure_unique_coins(self.collected_coins, "inventory")
        everywhere = list(self.collected_coins)
        for key, state in self.cache_states.items():
            ensure_unique_coins(state.coins, f"cache {key}")
            everywhere.extend(state.coins)
        ensure_unique_coins(everywhere, "saved game")
        return self


class GameStateStore(Protocol):
    """Durable slot for one serialized game."""

    def read(self) -> str | None:
        """Return the stored payload, or ``None`` when nothing was saved."""

    def write(self, payload: str) -> None:
        """Replace the stored payload."""


class InMemoryGameStateStore:
    def __init__(self, payload: str | None = None) -> None:
        self.payload = payload

    def read(self) -> str | None:
        return self.payload

    def write(self, payload: str) -> None:
        self.payload = payload


class JsonFileGameStateStore:
    """Keeps the saved game in a JSON file, replaced atomically on write."""

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> str | None:
        if not self._path.exists():
            return None
        try:
            return self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise MementoFormatError(f"Saved game {self._path} is not UTF-8 text") from exc

    def write(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._path.parent,
                delete=False,
                suffix=".tmp",
            ) as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
                temp_path = Path(handle.name)
            os.replace(temp_path, self._path)
        except Exception:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise
