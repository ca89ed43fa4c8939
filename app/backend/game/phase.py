from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Phase(str, Enum):
    LOADING_MODEL = "loading_model"
    WAITING_FOR_CAMERA = "waiting_for_camera"
    READY = "ready"
    HOW_TO_PLAY = "how_to_play"
    PLAYING = "playing"
    GAME_OVER = "game_over"
    CLOSED = "closed"


# Errors are not a phase of their own: they land in GAME_OVER with a message.
TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.LOADING_MODEL: frozenset({Phase.WAITING_FOR_CAMERA, Phase.GAME_OVER, Phase.CLOSED}),
    Phase.WAITING_FOR_CAMERA: frozenset({Phase.READY, Phase.GAME_OVER, Phase.CLOSED}),
    Phase.READY: frozenset({Phase.HOW_TO_PLAY, Phase.GAME_OVER, Phase.CLOSED}),
    Phase.HOW_TO_PLAY: frozenset({Phase.PLAYING, Phase.GAME_OVER, Phase.CLOSED}),
    Phase.PLAYING: frozenset({Phase.GAME_OVER, Phase.CLOSED}),
    Phase.GAME_OVER: frozenset({Phase.READY, Phase.WAITING_FOR_CAMERA, Phase.CLOSED}),
    Phase.CLOSED: frozenset(),
}


def can_transition(current: Phase, target: Phase) -> bool:
    return target in TRANSITIONS[current]


# Сообщения для пользователя
MODEL_LOAD_FAILED = "Could not load the hand tracking model. Please try again later."
CAMERA_UNSUPPORTED = "Your browser does not support camera access."
CAMERA_DENIED = "Camera access is required to play. Please allow camera permissions and refresh."
CAMERA_LOST = "The camera stream was lost. Your score has been kept."
CAMERA_UNAVAILABLE = "No camera could be opened. Check that one is connected and try again."
ESTIMATOR_FAILED = "Hand tracking stopped working. Your score has been kept."

_CAMERA_MESSAGES = {
    "unsupported browser": CAMERA_UNSUPPORTED,
    "permission denied": CAMERA_DENIED,
    "stream lost": CAMERA_LOST,
}


def camera_message(reason: str) -> str:
    return _CAMERA_MESSAGES.get(reason, CAMERA_UNAVAILABLE)


@dataclass(frozen=True)
class PhaseEvent:
    """What the presentation surface needs to draw the non-playing screens."""
    phase: Phase
    error: Optional[str] = None
    final_score: int = 0
    can_play_again: bool = False
