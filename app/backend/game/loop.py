from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from app.backend.ml.keypoints import HandKeypoints
from .round import Round, RoundSnapshot
from .surface import PresentationSurface

logger = logging.getLogger(__name__)


class FrameLoopDriver:
    """
    Цикл кадров раунда: кадр -> точки руки -> курсор -> попадания -> отрисовка -> снова.
    Останавливается, как только раунд перестаёт быть текущим;
    результат инференса, пришедший после этого, выбрасывается.
    """

    def __init__(
        self,
        rnd: Round,
        stream,
        source,
        surface: PresentationSurface,
        is_current: Callable[[int], bool],
        frame_interval: float = 0.0,
    ):
        self.round = rnd
        self.stream = stream
        self.source = source
        self.surface = surface
        self.is_current = is_current
        self.frame_interval = frame_interval

    def tick(self, keypoints: Optional[HandKeypoints]) -> RoundSnapshot:
        rnd = self.round
        # порядок фиксирован: курсор, потом попадания, потом отрисовка
        moved = rnd.pointer.update(keypoints)
        if moved:
            rnd.collisions.apply(rnd.pointer.cursor)
        snapshot = rnd.snapshot(cursor_changed=moved)
        self.surface.push_frame(snapshot)
        return snapshot

    async def run(self) -> None:
        """CameraError из stream.read() уходит наверх, в сессию."""
        round_id = self.round.round_id
        loop = asyncio.get_running_loop()
        last_infer = 0.0

        while self.is_current(round_id):
            frame = await self.stream.read()
            if not self.is_current(round_id):
                return

            now = loop.time()
            if self.frame_interval > 0 and (now - last_infer) < self.frame_interval:
                continue
            last_infer = now

            keypoints = await self.source.estimate(frame)
            if not self.is_current(round_id):
                logger.debug("dropping late estimate for round %s", round_id)
                return

            self.tick(keypoints)
            # отдаём управление таймеру и движению
            await asyncio.sleep(0)
