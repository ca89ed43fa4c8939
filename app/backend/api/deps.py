import asyncio
import os
from functools import lru_cache
from typing import Callable

from app.backend.game.config import GameConfig, load_config
from app.backend.game.errors import CameraError
from app.backend.ml.camera import BrowserCamera, DeviceCameraStream
from app.backend.ml.source import HandKeypointSource, KeypointSource

# browser => кадры шлёт фронт по WS, device => локальная камера через OpenCV
CAMERA_SOURCE = os.getenv("REHAB_CAMERA_SOURCE", "browser")
CAMERA_INDEX = int(os.getenv("REHAB_CAMERA_INDEX", "0"))


@lru_cache(maxsize=1)
def get_config() -> GameConfig:
    return load_config()


def _browser_source(camera: BrowserCamera) -> KeypointSource:
    return HandKeypointSource(camera.open)


def _device_source(camera: BrowserCamera) -> KeypointSource:
    async def open_device():
        stream = DeviceCameraStream(CAMERA_INDEX)
        try:
            return await stream.open()
        except (CameraError, asyncio.CancelledError):
            stream.stop()
            raise

    return HandKeypointSource(open_device)


def get_source_factory() -> Callable[[BrowserCamera], KeypointSource]:
    if CAMERA_SOURCE == "device":
        return _device_source
    if CAMERA_SOURCE != "browser":
        raise ValueError(f"REHAB_CAMERA_SOURCE must be 'browser' or 'device', got {CAMERA_SOURCE!r}")
    return _browser_source
