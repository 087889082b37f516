"""Deterministic pseudo-random values derived from string keys.

Cache placement and initial coin counts must come out the same on every run,
so nothing here touches :mod:`random` or Python's salted ``hash()``.
"""

from __future__ import annotations

import math

from geocoin.grid import Cell, cell_key

FNV32_OFFSET_BASIS = 0x811C9DC5
FNV32_PRIME = 0x01000193
HASH_SPACE = 2**32

MAX_INITIAL_COINS = 3
INITIAL_COINS_SUFFIX = "|initial"


def _fnv1a_32(data: bytes) -> int:
    value = FNV32_OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * FNV32_PRIME) & 0xFFFFFFFF
    return value


def _fmix32(value: int) -> int:
    # murmur3 finalizer; spreads FNV's weak low bits across the whole word
    value ^= value >> 16
    value = (value * 0x85EBCA6B) & 0xFFFFFFFF
    value ^= value >> 13
    value = (value * 0xC2B2AE35) & 0xFFFFFFFF
    value ^= value >> 16
    return value


def luck(key: str) -> float:
    """Map ``key`` to a reproducible float in ``[0, 1)``."""
    return _fmix32(_fnv1a_32(key.encode("utf-8"))) / HASH_SPACE


def spawns_cache(cell: Cell, probability: float) -> bool:
    return luck(cell_key(cell)) < probability


def initial_coin_count(cell: Cell) -> int:
    """Number of coins minted the first time a cache appears at ``cell`` (1..3)."""
    return 1 + math.floor(luck(cell_key(cell) + INITIAL_COINS_SUFFIX) * MAX_INITIAL_COINS)
