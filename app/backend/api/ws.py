from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
import asyncio
import time
from collections import deque
from typing import Optional
import os
import logging

from pydantic import ValidationError

from app.backend.api.deps import get_config, get_source_factory
from app.backend.api.schemas.game import ClientMessage, ErrorOut, FrameOut, PhaseOut
from app.backend.game.catalog import get_game
from app.backend.game.config import GameConfig
from app.backend.game.errors import GameError, UnknownGame
from app.backend.game.phase import PhaseEvent
from app.backend.game.round import RoundSnapshot
from app.backend.game.session import GameSession
from app.backend.ml.camera import BrowserCamera, decode_frame_bgr

router = APIRouter()

DEBUG_WS = os.getenv("REHAB_WS_DEBUG", "0") == "1"
PING_INTERVAL_S = float(os.getenv("REHAB_WS_PING_S", "10"))

logger = logging.getLogger("game_ws")
if not logger.handlers:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

# что присылает фронт в {"type": "camera", "status": ...}
CAMERA_STATUS = {
    "denied": "permission denied",
    "unsupported": "unsupported browser",
    "lost": "stream lost",
}


class WebSocketSurface:
    """
    Отдаёт состояние игры клиенту.
    Сообщения уходят в том порядке, в котором пришли; если кадры копятся
    быстрее, чем уходят, подряд идущие кадры схлопываются в последний.
    """

    def __init__(self, ws: WebSocket):
        self._ws = ws
        self._outbox: deque = deque()
        self._wake = asyncio.Event()
        self._closing = False
        self.frames_coalesced = 0

    def _put(self, kind: str, item) -> None:
        if kind == "frame" and self._outbox and self._outbox[-1][0] == "frame":
            self._outbox[-1] = (kind, item)
            self.frames_coalesced += 1
        else:
            self._outbox.append((kind, item))
        self._wake.set()

    def push_frame(self, snapshot: RoundSnapshot) -> None:
        self._put("frame", snapshot)

    def push_phase(self, event: PhaseEvent) -> None:
        self._put("phase", event)

    def push_error(self, detail: str) -> None:
        self._put("error", detail)

    def push_ping(self) -> None:
        self._put("ping", None)

    @staticmethod
    def _encode(kind: str, item) -> dict:
        if kind == "frame":
            return FrameOut.from_snapshot(item).model_dump()
        if kind == "phase":
            return PhaseOut.from_event(item).model_dump()
        if kind == "ping":
            return {"type": "ping"}
        return ErrorOut(detail=item).model_dump()

    async def flush(self) -> None:
        while self._outbox:
            kind, item = self._outbox.popleft()
            await self._ws.send_json(self._encode(kind, item))

    async def run(self) -> None:
        while True:
            await self._wake.wait()
            self._wake.clear()
            await self.flush()
            if self._closing:
                return

    def close(self) -> None:
        """run() допишет всё, что в очереди, и завершится."""
        self._closing = True
        self._wake.set()


async def _report_errors(surface: WebSocketSurface, coro) -> None:
    try:
        await coro
    except GameError as e:
        surface.push_error(str(e))


@router.websocket("/ws/game/{slug}")
async def game_ws(
    ws: WebSocket,
    slug: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
    config: GameConfig = Depends(get_config),
    make_source=Depends(get_source_factory),
):
    await ws.accept()

    try:
        game = get_game(slug)
    except UnknownGame as e:
        await ws.send_json(ErrorOut(detail=str(e)).model_dump())
        await ws.close(code=4404)
        return

    camera = BrowserCamera()
    surface = WebSocketSurface(ws)
    session = GameSession(make_source(camera), surface, game.configure(config).with_display(width, height))

    frames_in = 0
    decode_err = 0
    last_debug = 0.0

    async def pinger():
        while True:
            await asyncio.sleep(PING_INTERVAL_S)
            surface.push_ping()

    background: set[asyncio.Task] = set()

    def spawn(coro) -> None:
        task = asyncio.create_task(_report_errors(surface, coro))
        background.add(task)
        task.add_done_callback(background.discard)

    send_task = asyncio.create_task(surface.run())
    ping_task = asyncio.create_task(pinger())
    # open() ждёт первый кадр, поэтому идёт фоном, пока мы принимаем сообщения
    spawn(session.open())

    try:
        while True:
            raw = await ws.receive_json()
            try:
                msg = ClientMessage.model_validate(raw)
            except ValidationError:
                surface.push_error("malformed message")
                continue

            if msg.type == "frame":
                if not isinstance(msg.data, str):
                    continue
                frames_in += 1
                try:
                    frame = decode_frame_bgr(msg.data)
                except (ValueError, TypeError):
                    decode_err += 1
                    continue
                camera.feed(frame)

            elif msg.type == "camera":
                reason = CAMERA_STATUS.get(msg.status or "")
                if reason is None:
                    surface.push_error(f"unknown camera status: {msg.status}")
                    continue
                camera.report(reason)
                session.check_camera()

            elif msg.type == "display":
                # новый размер экрана действует со следующего раунда
                session.config = session.config.with_display(msg.width, msg.height)

            elif msg.type == "command":
                if msg.action == "exit":
                    await session.exit()
                    break
                try:
                    if msg.action == "start_game":
                        session.start_game()
                    elif msg.action == "lets_go":
                        session.lets_go()
                    elif msg.action == "play_again":
                        spawn(session.play_again())
                    else:
                        surface.push_error(f"unknown action: {msg.action}")
                except GameError as e:
                    surface.push_error(str(e))

            else:
                surface.push_error(f"unknown message type: {msg.type}")

            if DEBUG_WS:
                now = time.monotonic()
                if (now - last_debug) > 1.0:
                    last_debug = now
                    stream = camera.stream
                    logger.info(
                        f"phase={session.phase.value} frames_in={frames_in} "
                        f"dropped={stream.frames_dropped if stream else 0} decode_err={decode_err} "
                        f"coalesced={surface.frames_coalesced} score={session.score}"
                    )

    except WebSocketDisconnect:
        pass
    finally:
        await session.exit()

        for t in list(background):
            t.cancel()
        ping_task.cancel()
        await asyncio.gather(ping_task, *background, return_exceptions=True)

        surface.close()
        try:
            await asyncio.wait_for(send_task, timeout=1.0)
            await ws.close()
        except Exception:
            pass
