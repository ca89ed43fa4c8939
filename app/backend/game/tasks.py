from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class RoundTasks:
    """
    Все фоновые задачи раунда (кадры, движение, спавн, таймер) живут здесь.
    cancel_all() снимает их разом и синхронно.
    """

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}

    def register(self, name: str, coro: Awaitable) -> asyncio.Task:
        if name in self._tasks:
            raise RuntimeError(f"task {name!r} already registered")
        task = asyncio.ensure_future(coro)
        task.add_done_callback(self._log_failure)
        self._tasks[name] = task
        return task

    def cancel_all(self) -> int:
        tasks, self._tasks = self._tasks, {}
        for task in tasks.values():
            task.cancel()
        return len(tasks)

    @property
    def names(self):
        return sorted(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    @staticmethod
    def _log_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("round task crashed", exc_info=exc)


async def every(interval: float, tick: Callable[[], bool]) -> None:
    """
    Вызывает tick() раз в interval секунд, пока он не вернёт False.
    Расписание считается от старта, чтобы задержки не накапливались.
    """
    loop = asyncio.get_running_loop()
    next_at = loop.time() + interval
    while True:
        await asyncio.sleep(max(0.0, next_at - loop.time()))
        next_at += interval
        if tick() is False:
            return
