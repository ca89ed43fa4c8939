from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import time
from functools import partial
from typing import Awaitable, Callable, Optional, Protocol

import numpy as np

from app.backend.game.errors import EstimatorError, ModelLoadError
from .camera import FrameStream
from .keypoints import HandKeypoints
from .landmarker import HandLandmarkerEstimator

logger = logging.getLogger(__name__)


class KeypointSource(Protocol):
    async def initialize(self) -> None:
        """ModelLoadError, если модель не загрузилась."""

    async def open_camera(self) -> FrameStream:
        """CameraError: "permission denied", "unsupported browser", ..."""

    async def estimate(self, frame: np.ndarray) -> Optional[HandKeypoints]:
        """None, если руки в кадре нет."""

    async def close(self) -> None:
        ...


class HandKeypointSource:
    """
    Камера + MediaPipe.
    Инференс в отдельном single-thread executor:
    так landmarker живёт и вызывается всегда из одного потока, а event loop не блокируется.
    """

    def __init__(
        self,
        open_camera: Callable[[], Awaitable[FrameStream]],
        model_path: Optional[str] = None,
        estimator_factory: Callable[..., HandLandmarkerEstimator] = HandLandmarkerEstimator,
    ):
        self._open_camera = open_camera
        self.model_path = model_path
        self._estimator_factory = estimator_factory
        self._estimator = None
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        self._closed = False

    async def initialize(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            estimator = await loop.run_in_executor(
                self._executor, partial(self._estimator_factory, model_path=self.model_path)
            )
        except Exception as e:
            logger.error("hand landmarker failed to load: %s", e)
            raise ModelLoadError(f"model load failed: {e}") from e

        if self._closed:
            # close() пришёл, пока модель грузилась: executor уже остановлен
            estimator.close()
            raise ModelLoadError("source closed during model load")
        self._estimator = estimator

    async def open_camera(self) -> FrameStream:
        return await self._open_camera()

    async def estimate(self, frame: np.ndarray) -> Optional[HandKeypoints]:
        if self._estimator is None:
            raise RuntimeError("initialize() must succeed before estimate()")
        # timestamp_ms для MediaPipe
        ts_ms = int(time.monotonic() * 1000)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, self._estimator.detect, frame, ts_ms)
        except Exception as e:
            logger.exception("hand landmarker failed on a frame")
            raise EstimatorError(f"inference failed: {e}") from e

    async def close(self) -> None:
        self._closed = True
        estimator, self._estimator = self._estimator, None
        if estimator is not None:
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(self._executor, estimator.close)
            except Exception:
                logger.exception("failed to close hand landmarker")
        self._executor.shutdown(wait=False)
