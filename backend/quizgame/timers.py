from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[None]]


class TimerRegistry:
    """At most one deferred transition per game.

    A fired timer removes itself from the registry before running its
    callback, so the transition it performs can schedule the next timer for
    the same game without cancelling the task it is running in.
    """

    def __init__(self):
        self._tasks: Dict[int, asyncio.Task] = {}

    def schedule(self, game_id: int, delay: float, callback: TimerCallback) -> asyncio.Task:
        self.cancel(game_id)
        task = asyncio.create_task(self._run(game_id, delay, callback))
        self._tasks[game_id] = task
        logger.info("[timer-set] game=%s delay=%ss", game_id, delay)
        return task

    def cancel(self, game_id: int) -> bool:
        task = self._tasks.pop(game_id, None)
        if task is None:
            return False
        task.cancel()
        logger.info("[timer-cancel] game=%s", game_id)
        return True

    def cancel_all(self) -> None:
        for game_id in list(self._tasks):
            self.cancel(game_id)

    def pending(self, game_id: int) -> bool:
        return game_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    async def _run(self, game_id: int, delay: float, callback: TimerCallback) -> None:
        await asyncio.sleep(delay)
        if self._tasks.get(game_id) is asyncio.current_task():
            del self._tasks[game_id]
        logger.info("[timer-fire] game=%s", game_id)
        try:
            await callback()
        except Exception:
            logger.exception("[timer-error] game=%s deferred transition failed", game_id)
            raise
