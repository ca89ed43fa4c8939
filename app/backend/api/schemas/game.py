from pydantic import BaseModel, ConfigDict
from typing import List, Literal, Optional

from app.backend.game.phase import PhaseEvent
from app.backend.game.round import RoundSnapshot


class GameOut(BaseModel):
    slug: str
    title: str
    description: str
    direction: str
    landmark: int
    round_duration: int


class EntityOut(BaseModel):
    id: int
    x: float
    y: float
    size: float

    model_config = ConfigDict(from_attributes=True)


class CursorOut(BaseModel):
    x: float
    y: float

    model_config = ConfigDict(from_attributes=True)


class FrameOut(BaseModel):
    type: Literal["frame"] = "frame"
    round_id: int
    score: int
    time_remaining: int
    cursor: Optional[CursorOut] = None
    cursor_changed: bool = False
    entities: List[EntityOut]

    @classmethod
    def from_snapshot(cls, s: RoundSnapshot) -> "FrameOut":
        return cls(
            round_id=s.round_id,
            score=s.score,
            time_remaining=s.time_remaining,
            cursor=CursorOut.model_validate(s.cursor) if s.cursor is not None else None,
            cursor_changed=s.cursor_changed,
            entities=[EntityOut.model_validate(e) for e in s.entities],
        )


class PhaseOut(BaseModel):
    type: Literal["phase"] = "phase"
    phase: str
    error: Optional[str] = None
    final_score: int = 0
    can_play_again: bool = False

    @classmethod
    def from_event(cls, e: PhaseEvent) -> "PhaseOut":
        return cls(
            phase=e.phase.value,
            error=e.error,
            final_score=e.final_score,
            can_play_again=e.can_play_again,
        )


class ErrorOut(BaseModel):
    type: Literal["error"] = "error"
    detail: str


class ClientMessage(BaseModel):
    """frame | camera | display | command"""
    type: str
    data: Optional[str] = None
    status: Optional[str] = None
    action: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
