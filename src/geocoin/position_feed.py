"""Asynchronous feed that applies player position updates one at a time."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from geocoin.grid import cell_key
from geocoin.world import WorldController


class PositionUpdateStatus(str, Enum):
    """Lifecycle states for submitted position updates."""

    QUEUED = "queued"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass(slots=True)
class PositionUpdate:
    """One reported player position and the outcome of applying it."""

    id: str
    lat: float
    lng: float
    submitted_at: datetime
    status: PositionUpdateStatus
    cell: str | None = None
    error: str | None = None


class PositionFeedRuntime:
    """Queue-backed runtime so neighborhood recomputes never interleave.

    Geolocation sources may report faster than the world can respawn caches;
    every update waits for the previous one to finish its full recompute.
    """

    def __init__(
        self,
        controller: WorldController,
        *,
        max_queue_size: int = 100,
        history_size: int = 1_000,
        logger: logging.Logger | None = None,
    ) -> None:
        self._controller = controller
        self._logger = logger or logging.getLogger("geocoin.position_feed")

        self._updates: dict[str, PositionUpdate] = {}
        self._order: deque[str] = deque()
        self._history_size = history_size
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_queue_size)
        self._worker_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the worker loop once for this runtime."""
        if self._worker_task and not self._worker_task.done():
            return

        self._worker_task = asyncio.create_task(self._worker_loop(), name="position-feed-worker")
        self._logger.info("position_feed_started", extra={"queue_maxsize": self._queue.maxsize})

    async def stop(self) -> None:
        """Stop worker loop and wait for graceful cancellation."""
        if not self._worker_task:
            return

        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        finally:
            self._worker_task = None

        self._logger.info("position_feed_stopped")

    async def drain(self) -> None:
        """Wait until every submitted update has been applied or has failed."""
        await self._queue.join()

    def submit_position(self, lat: float, lng: float) -> str:
        """Queue a position update and return its id."""
        update_id = uuid4().hex
        self._remember(
            PositionUpdate(
                id=update_id,
                lat=lat,
                lng=lng,
                submitted_at=datetime.now(timezone.utc),
                status=PositionUpdateStatus.QUEUED,
            )
        )
        self._queue.put_nowait(update_id)
        self._logger.debug(
            "position_submitted",
            extra={"update_id": update_id, "lat": lat, "lng": lng, "queue_size": self._queue.qsize()},
        )
        return update_id

    def get_update(self, update_id: str) -> PositionUpdate:
        if update_id not in self._updates:
            raise KeyError(f"Unknown position update id: {update_id}")
        return self._updates[update_id]

    def list_recent_updates(self, limit: int = 20) -> list[PositionUpdate]:
        return [self._updates[update_id] for update_id in reversed(self._order)][:limit]

    def _remember(self, update: PositionUpdate) -> None:
        self._updates[update.id] = update
        self._order.append(update.id)
        while len(self._order) > self._history_size:
            forgotten = self._order.popleft()
            if self._updates[forgotten].status is PositionUpdateStatus.QUEUED:
                self._order.appendleft(forgotten)
                break
            del self._updates[forgotten]

    async def _worker_loop(self) -> None:
        while True:
            update_id = await self._queue.get()
            try:
                self._apply(update_id)
            finally:
                self._queue.task_done()

    def _apply(self, update_id: str) -> None:
        update = self._updates[update_id]
        try:
            cell = self._controller.move_to(update.lat, update.lng)
        except Exception as exc:  # noqa: BLE001 - one bad update must not stop the feed.
            update.status = PositionUpdateStatus.FAILED
            update.error = f"{type(exc).__name__}: {exc}"
            self._logger.exception("position_update_failed", extra={"update_id": update.id})
            return

        update.status = PositionUpdateStatus.APPLIED
        update.cell = cell_key(cell)
        self._logger.info("position_applied", extra={"update_id": update.id, "cell": update.cell})
