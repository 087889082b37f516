"""Error kinds raised by the geocoin core."""

from __future__ import annotations


class GeocoinError(Exception):
    """Base class for geocoin errors."""


class MementoFormatError(GeocoinError):
    """Raised when a cache snapshot or saved game payload cannot be decoded."""


class InvalidCellConfiguration(GeocoinError):
    """Raised when grid parameters would break reproducible cell identities."""


class CoinNotFound(GeocoinError):
    """Raised when a coin is not held by the container it should be taken from."""

    def __init__(self, coin: object, container: str) -> None:
        super().__init__(f"{coin} not found in {container}")
        self.coin = coin
        self.container = container
