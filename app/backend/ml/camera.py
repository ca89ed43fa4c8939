from __future__ import annotations

import asyncio
import base64
import concurrent.futures
import logging
from typing import Optional, Protocol, Union

import cv2
import numpy as np

from app.backend.game.errors import CameraError

logger = logging.getLogger(__name__)


class FrameStream(Protocol):
    closed: bool

    @property
    def alive(self) -> bool:
        """Поток открыт и ещё не сообщал об ошибке."""

    @property
    def failure(self) -> Optional[str]:
        """Причина, по которой поток умер (для сообщения пользователю)."""

    async def wait_ready(self) -> None:
        """Ждём первый кадр. CameraError, если камера так и не заработала."""

    async def read(self) -> np.ndarray:
        """Следующий кадр (BGR). CameraError, если поток потерян."""

    def stop(self) -> None:
        """Отпустить камеру. Повторный вызов ничего не делает."""


def decode_frame_bgr(data_url: str) -> np.ndarray:
    _, encoded = data_url.split(",", 1)
    img_bytes = base64.b64decode(encoded)
    if not img_bytes:
        raise ValueError("empty frame")
    img = cv2.imdecode(np.frombuffer(img_bytes, np.uint8), cv2.IMREAD_COLOR)
    if img is None:
        raise ValueError("cv2.imdecode returned None")
    return img


class BrowserFrameStream:
    """
    Кадры приходят из браузера по WebSocket.
    Очередь строго на 1 элемент => "всегда последний кадр", без накапливания лага.
    """

    def __init__(self):
        self._queue: asyncio.Queue[Union[np.ndarray, CameraError]] = asyncio.Queue(maxsize=1)
        self._ready = asyncio.Event()
        self._error: Optional[CameraError] = None
        self.closed = False
        self.frames_in = 0
        self.frames_dropped = 0

    def _replace(self, item) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            if not isinstance(item, CameraError):
                self.frames_dropped += 1
        self._queue.put_nowait(item)

    def put(self, frame: np.ndarray) -> None:
        if self.closed or self._error is not None:
            return
        self.frames_in += 1
        self._replace(frame)
        self._ready.set()

    @property
    def alive(self) -> bool:
        return not self.closed and self._error is None

    @property
    def failure(self) -> Optional[str]:
        return self._error.reason if self._error is not None else None

    def fail(self, reason: str) -> None:
        if self._error is not None:
            return
        self._error = CameraError(reason)
        self._replace(self._error)
        self._ready.set()

    async def wait_ready(self) -> None:
        await self._ready.wait()
        if self._error is not None:
            raise self._error

    async def read(self) -> np.ndarray:
        if self._error is not None:
            raise self._error
        item = await self._queue.get()
        if isinstance(item, CameraError):
            raise item
        return item

    def stop(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.fail("stream lost")


class BrowserCamera:
    """
    Камера на стороне клиента. open() даёт новый поток на каждую попытку,
    куда WebSocket дальше складывает кадры.
    """

    def __init__(self):
        self.stream: Optional[BrowserFrameStream] = None

    async def open(self) -> BrowserFrameStream:
        if self.stream is not None:
            self.stream.stop()
        self.stream = BrowserFrameStream()
        return self.stream

    def feed(self, frame: np.ndarray) -> bool:
        if self.stream is None or self.stream.closed:
            return False
        self.stream.put(frame)
        return True

    def report(self, reason: str) -> None:
        if self.stream is None:
            logger.info("camera status %r with no open stream", reason)
            return
        self.stream.fail(reason)


class DeviceCameraStream:
    """Локальная камера через cv2.VideoCapture. Чтение идёт в своём потоке."""

    def __init__(self, index: int = 0, width: int = 640, height: int = 480):
        self.index = index
        self.width = width
        self.height = height
        self.closed = False
        self._cap = None
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        self._error: Optional[str] = None

    def _open(self) -> None:
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise CameraError("camera unavailable")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        self._cap = cap

    def _read(self) -> np.ndarray:
        if self.closed or self._cap is None:
            raise CameraError("stream lost")
        ok, frame = self._cap.read()
        if not ok or frame is None:
            self._error = "stream lost"
            raise CameraError(self._error)
        return frame

    @property
    def alive(self) -> bool:
        return not self.closed and self._error is None

    @property
    def failure(self) -> Optional[str]:
        return self._error

    async def open(self) -> "DeviceCameraStream":
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, self._open)
        return self

    async def wait_ready(self) -> None:
        await self.read()

    async def read(self) -> np.ndarray:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._read)

    def stop(self) -> None:
        if self.closed:
            return
        self.closed = True
        cap, self._cap = self._cap, None
        if cap is not None:
            self._executor.submit(cap.release)
        self._executor.shutdown(wait=False)
