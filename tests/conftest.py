import asyncio
from typing import List, Optional

import numpy as np
import pytest

from app.backend.game.config import GameConfig
from app.backend.game.errors import CameraError, EstimatorError, ModelLoadError
from app.backend.ml.keypoints import HandKeypoints, Keypoint

IMAGE_W, IMAGE_H = 640, 480


def hand_at(x: float, y: float, landmark: int = 8, image_w: int = IMAGE_W, image_h: int = IMAGE_H) -> HandKeypoints:
    """21 точка, нужная (landmark) в (x, y) пикселей кадра, остальные в центре."""
    points = [Keypoint(image_w / 2, image_h / 2)] * 21
    points[landmark] = Keypoint(x, y, 0.9)
    return HandKeypoints(tuple(points), image_w, image_h)


def hand_over_screen(sx: float, sy: float, config: GameConfig) -> HandKeypoints:
    """Рука, которая даёт курсор в точке экрана (sx, sy) с учётом зеркала."""
    x = (config.display_width - sx) / config.display_width * IMAGE_W
    y = sy / config.display_height * IMAGE_H
    return hand_at(x, y, landmark=config.landmark)


class FakeStream:
    def __init__(self, ready: bool = True, fail_reason: Optional[str] = None):
        self.closed = False
        self.stop_calls = 0
        self.fail_reason = fail_reason
        self.failed: Optional[str] = None
        self._ready = ready
        self.frames: asyncio.Queue = asyncio.Queue()

    async def wait_ready(self):
        if self.fail_reason:
            raise CameraError(self.fail_reason)
        if not self._ready:
            await asyncio.Event().wait()

    async def read(self):
        if self.closed:
            raise CameraError("stream lost")
        item = await self.frames.get()
        if isinstance(item, CameraError):
            raise item
        return item

    def push(self, frame=None):
        self.frames.put_nowait(frame if frame is not None else np.zeros((IMAGE_H, IMAGE_W, 3), np.uint8))

    @property
    def alive(self):
        return not self.closed and self.failed is None

    @property
    def failure(self):
        return self.failed

    def lose(self, reason: str = "stream lost"):
        self.failed = reason
        self.frames.put_nowait(CameraError(reason))

    def stop(self):
        self.stop_calls += 1
        self.closed = True


class FakeSource:
    """
    Источник точек для тестов: модель грузится (или нет), камера открывается (или нет),
    estimate() отдаёт заранее положенные результаты.
    """
    def __init__(self, fail_init: bool = False, camera_error: Optional[str] = None, camera_ready: bool = True):
        self.fail_init = fail_init
        self.camera_error = camera_error
        self.camera_ready = camera_ready
        self.estimates: List[Optional[HandKeypoints]] = []
        self.streams: List[FakeStream] = []
        self.initialized = False
        self.closed = False
        self.estimate_calls = 0
        self.gate: Optional[asyncio.Event] = None
        self.estimate_error: Optional[str] = None

    async def initialize(self):
        if self.fail_init:
            raise ModelLoadError("model load failed")
        self.initialized = True

    async def open_camera(self):
        if self.camera_error:
            raise CameraError(self.camera_error)
        stream = FakeStream(ready=self.camera_ready)
        self.streams.append(stream)
        return stream

    async def estimate(self, frame):
        self.estimate_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.estimate_error:
            raise EstimatorError(self.estimate_error)
        if self.estimates:
            return self.estimates.pop(0)
        return None

    async def close(self):
        self.closed = True


class RecordingSurface:
    def __init__(self):
        self.frames = []
        self.phases = []

    def push_frame(self, snapshot):
        self.frames.append(snapshot)

    def push_phase(self, event):
        self.phases.append(event)

    @property
    def phase_names(self):
        return [e.phase.value for e in self.phases]


@pytest.fixture
def config():
    return GameConfig(display_width=1000, display_height=800)


@pytest.fixture
def fast_config():
    # всё крутится за доли секунды
    return GameConfig(
        round_duration=3,
        timer_interval=0.02,
        spawn_interval=0.01,
        motion_interval=0.005,
        display_width=1000,
        display_height=800,
        camera_timeout=0.2,
    )


@pytest.fixture
def surface():
    return RecordingSurface()
