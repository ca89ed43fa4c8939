from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import GameConfig
from .entities import Entity, EntitySimulation
from .pointer import Cursor, PointerMapper
from .scoring import CollisionEngine
from .timer import RoundTimer


@dataclass(frozen=True)
class RoundSnapshot:
    round_id: int
    entities: Tuple[Entity, ...]
    score: int
    time_remaining: int
    cursor: Optional[Cursor]
    cursor_changed: bool


class Round:
    """Состояние одного раунда: пузыри, счёт, таймер, курсор."""

    def __init__(self, round_id: int, config: GameConfig, rng: Optional[random.Random] = None):
        self.round_id = round_id
        self.config = config
        self.simulation = EntitySimulation(config, rng)
        self.collisions = CollisionEngine(self.simulation)
        self.timer = RoundTimer(config.round_duration)
        self.pointer = PointerMapper(config.display_width, config.display_height, config.landmark)

    @property
    def score(self) -> int:
        return self.collisions.score

    @property
    def time_remaining(self) -> int:
        return self.timer.time_remaining

    def snapshot(self, cursor_changed: bool = False) -> RoundSnapshot:
        return RoundSnapshot(
            round_id=self.round_id,
            entities=tuple(self.simulation.entities),
            score=self.score,
            time_remaining=self.time_remaining,
            cursor=self.pointer.cursor,
            cursor_changed=cursor_changed,
        )
