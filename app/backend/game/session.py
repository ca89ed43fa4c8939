from __future__ import annotations

import asyncio
import itertools
import logging
import random
from typing import Optional

from .config import GameConfig
from .errors import CameraError, EstimatorError, InvalidTransition, ModelLoadError, PlayAgainUnavailable
from .loop import FrameLoopDriver
from .phase import ESTIMATOR_FAILED, MODEL_LOAD_FAILED, Phase, PhaseEvent, camera_message, can_transition
from .round import Round
from .surface import PresentationSurface
from .tasks import RoundTasks, every

logger = logging.getLogger(__name__)


class GameSession:
    """
    Жизненный цикл одной игры:
      LOADING_MODEL -> WAITING_FOR_CAMERA -> READY -> HOW_TO_PLAY -> PLAYING -> GAME_OVER
    и CLOSED из любого состояния.

    Фаза меняется только здесь. Ошибки модели и камеры ловятся здесь же и
    превращаются в GAME_OVER с сообщением; до симуляции они не доходят.
    Только в PLAYING работают задачи раунда; при выходе из PLAYING они снимаются разом.
    """

    def __init__(self, source, surface: PresentationSurface, config: Optional[GameConfig] = None, rng: Optional[random.Random] = None):
        self.source = source
        self.surface = surface
        self.config = config or GameConfig()
        self.rng = rng or random.Random()

        self.phase = Phase.LOADING_MODEL
        self.error: Optional[str] = None
        self.estimator_ready = False
        self.init_failed = False
        self.stream = None
        self._pending_stream = None  # открыт, но ещё не дал первый кадр
        self.round: Optional[Round] = None
        self.driver: Optional[FrameLoopDriver] = None

        self._round_ids = itertools.count(1)
        self._tasks = RoundTasks()

    # ---------- чтение состояния ----------

    @property
    def score(self) -> int:
        return self.round.score if self.round else 0

    @property
    def time_remaining(self) -> int:
        return self.round.time_remaining if self.round else self.config.round_duration

    @property
    def can_play_again(self) -> bool:
        return self.phase is Phase.GAME_OVER and self.estimator_ready

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def is_current(self, round_id: int) -> bool:
        return (
            self.phase is Phase.PLAYING
            and self.round is not None
            and self.round.round_id == round_id
        )

    def event(self) -> PhaseEvent:
        return PhaseEvent(
            phase=self.phase,
            error=self.error,
            final_score=self.score,
            can_play_again=self.can_play_again,
        )

    # ---------- переходы ----------

    def _transition(self, target: Phase) -> None:
        if not can_transition(self.phase, target):
            raise InvalidTransition(self.phase, target)
        leaving_play = self.phase is Phase.PLAYING
        logger.info("phase %s -> %s", self.phase.value, target.value)
        self.phase = target
        if leaving_play:
            cancelled = self._tasks.cancel_all()
            logger.debug("cancelled %d round tasks", cancelled)
        self.surface.push_phase(self.event())

    def _fail(self, message: str) -> None:
        self.error = message
        self._transition(Phase.GAME_OVER)

    async def open(self) -> None:
        """Загрузка модели, потом камера. Заканчивается в READY или GAME_OVER."""
        if self.phase is not Phase.LOADING_MODEL:
            raise InvalidTransition(self.phase, Phase.LOADING_MODEL)
        self.surface.push_phase(self.event())

        try:
            await self.source.initialize()
        except ModelLoadError as e:
            logger.error("estimator failed to initialize: %s", e.reason)
            if self.phase is Phase.LOADING_MODEL:
                self.init_failed = True
                self._fail(MODEL_LOAD_FAILED)
            return

        if self.phase is not Phase.LOADING_MODEL:
            # вышли, пока грузилась модель
            return
        self.estimator_ready = True
        self._transition(Phase.WAITING_FOR_CAMERA)
        await self._acquire_camera()

    async def _acquire_camera(self) -> None:
        stream = None
        try:
            stream = await self.source.open_camera()
            if self.phase is not Phase.WAITING_FOR_CAMERA:
                return
            self._pending_stream = stream
            await asyncio.wait_for(stream.wait_ready(), timeout=self.config.camera_timeout)
            if self.phase is Phase.WAITING_FOR_CAMERA:
                self.stream, stream = stream, None
                self._transition(Phase.READY)
        except asyncio.TimeoutError:
            self._camera_failed(CameraError("timed out waiting for camera"))
        except CameraError as e:
            self._camera_failed(e)
        finally:
            self._pending_stream = None
            # поток, который не стал self.stream, отпускаем всегда, в т.ч. при отмене
            if stream is not None:
                stream.stop()

    def _camera_failed(self, err: CameraError) -> None:
        logger.warning("camera failed: %s", err.reason)
        if self.phase is Phase.WAITING_FOR_CAMERA:
            self._fail(camera_message(err.reason))

    def check_camera(self) -> bool:
        """
        В меню (READY, HOW_TO_PLAY) камеру никто не читает, поэтому её смерть
        замечаем здесь: сессия уходит в GAME_OVER с сообщением про камеру.
        """
        if self.phase not in (Phase.READY, Phase.HOW_TO_PLAY):
            return self.stream is not None and self.stream.alive
        if self.stream is not None and self.stream.alive:
            return True
        reason = self.stream.failure if self.stream is not None else None
        logger.warning("camera died before the round: %s", reason)
        self._release_camera()
        self._fail(camera_message(reason or "stream lost"))
        return False

    def start_game(self) -> None:
        if self.phase is Phase.READY and not self.check_camera():
            return
        self._transition(Phase.HOW_TO_PLAY)

    def lets_go(self) -> None:
        if self.phase is Phase.HOW_TO_PLAY and not self.check_camera():
            return
        if not self.estimator_ready or self.stream is None:
            raise InvalidTransition(self.phase, Phase.PLAYING)
        self._transition(Phase.PLAYING)
        self._start_round()

    async def play_again(self) -> None:
        if self.phase is not Phase.GAME_OVER:
            raise InvalidTransition(self.phase, Phase.READY)
        if not self.estimator_ready:
            raise PlayAgainUnavailable(MODEL_LOAD_FAILED)

        self.error = None
        self.round = None
        self.driver = None
        if self.stream is not None and self.stream.alive:
            self._transition(Phase.READY)
            return

        self._release_camera()
        self._transition(Phase.WAITING_FOR_CAMERA)
        await self._acquire_camera()

    async def exit(self) -> None:
        """Выход из игры. Повторный вызов ничего не делает."""
        if self.phase is Phase.CLOSED:
            return
        self._transition(Phase.CLOSED)
        self._tasks.cancel_all()
        self._release_camera()
        pending, self._pending_stream = self._pending_stream, None
        if pending is not None:
            pending.stop()
        await self.source.close()

    def _release_camera(self) -> None:
        stream, self.stream = self.stream, None
        if stream is not None:
            stream.stop()

    # ---------- раунд ----------

    def _start_round(self) -> None:
        rnd = Round(next(self._round_ids), self.config, self.rng)
        self.round = rnd
        self.driver = FrameLoopDriver(
            rnd,
            self.stream,
            self.source,
            self.surface,
            self.is_current,
            frame_interval=self.config.frame_interval,
        )
        cfg = self.config
        self._tasks.register("frames", self._run_frames(rnd, self.driver))
        self._tasks.register("motion", every(cfg.motion_interval, lambda: self.motion_tick(rnd)))
        self._tasks.register("spawn", every(cfg.spawn_interval, lambda: self.spawn_tick(rnd)))
        self._tasks.register("timer", every(cfg.timer_interval, lambda: self.timer_tick(rnd)))
        self.surface.push_frame(rnd.snapshot())

    async def _run_frames(self, rnd: Round, driver: FrameLoopDriver) -> None:
        try:
            await driver.run()
        except CameraError as e:
            if self.is_current(rnd.round_id):
                logger.warning("camera lost mid-round: %s", e.reason)
                self._release_camera()
                self._end_round(camera_message(e.reason))
        except EstimatorError as e:
            if self.is_current(rnd.round_id):
                logger.error("estimator failed mid-round: %s", e.reason)
                self._end_round(ESTIMATOR_FAILED)

    def motion_tick(self, rnd: Round) -> bool:
        if not self.is_current(rnd.round_id):
            return False
        rnd.simulation.advance()
        self.surface.push_frame(rnd.snapshot())
        return True

    def spawn_tick(self, rnd: Round) -> bool:
        if not self.is_current(rnd.round_id):
            return False
        rnd.simulation.spawn()
        return True

    def timer_tick(self, rnd: Round) -> bool:
        if not self.is_current(rnd.round_id):
            return False
        if rnd.timer.tick():
            self._end_round()
            return False
        return True

    def _end_round(self, error: Optional[str] = None) -> None:
        if self.phase is not Phase.PLAYING:
            return
        self.error = error
        logger.info("round %s over, score=%d", self.round.round_id, self.score)
        self._transition(Phase.GAME_OVER)
