"""
Outbox for remote config saves.

Single writer, coalescing: at most one remote save is in flight, and anything
submitted meanwhile replaces the pending snapshot. Every submission is a full
record, so the last snapshot submitted is the last one written no matter how
long earlier saves take.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from expense_ai.schemas.ai import CachedConfigEntry
from expense_ai.services.config_store import SaveOutcome

logger = logging.getLogger(__name__)

SaveFn = Callable[[CachedConfigEntry, Optional[str]], Awaitable[SaveOutcome]]


@dataclass(frozen=True)
class OutboxItem:
    sequence: int
    entry: CachedConfigEntry
    user_id: Optional[str]


# (item, outcome, superseded) - superseded is True when a newer item is queued
ResultFn = Callable[[OutboxItem, SaveOutcome, bool], None]


class RemoteSaveOutbox:
    """Serializes remote saves and drops intermediate snapshots."""

    def __init__(self, save: SaveFn, on_result: Optional[ResultFn] = None):
        self._save = save
        self._on_result = on_result
        self._sequence = 0
        self._pending: Optional[OutboxItem] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def idle(self) -> bool:
        return self._pending is None and (self._task is None or self._task.done())

    def submit(self, entry: CachedConfigEntry, user_id: Optional[str]) -> int:
        """
        Queue a full snapshot for saving. Must be called from the event loop.

        Returns:
            Sequence number of the submission
        """
        self._sequence += 1
        if self._pending is not None:
            logger.debug(f"Outbox snapshot {self._pending.sequence} superseded by {self._sequence}")
        self._pending = OutboxItem(self._sequence, entry, user_id)

        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._drain())
        return self._sequence

    async def _drain(self) -> None:
        while self._pending is not None:
            item, self._pending = self._pending, None
            try:
                outcome = await self._save(item.entry, item.user_id)
            except Exception as e:
                # The store reports failures as outcomes; anything else is a bug
                logger.exception(f"Unexpected error saving AI config snapshot {item.sequence}: {e}")
                outcome = SaveOutcome.FAILED

            if self._on_result is not None:
                self._on_result(item, outcome, self._pending is not None)

    async def wait_idle(self) -> None:
        """Wait until every submitted snapshot has been handled."""
        while self._task is not None and not self._task.done():
            await self._task
