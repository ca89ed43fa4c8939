from __future__ import annotations

import itertools
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .config import GameConfig, UP


@dataclass(frozen=True)
class Entity:
    id: int
    x: float
    y: float
    size: float   # диаметр
    speed: float  # единиц за тик движения

    @property
    def radius(self) -> float:
        return self.size / 2


class EntitySimulation:
    """
    Живые пузыри одного раунда.
    Порядок внутри тика движения: сначала сдвиг, потом удаление вышедших за край.
    id берутся из счётчика раунда и никогда не повторяются.
    """

    def __init__(self, config: GameConfig, rng: Optional[random.Random] = None):
        self.config = config
        self.rng = rng or random.Random()
        self._ids = itertools.count(1)
        self._entities: dict[int, Entity] = {}

    @property
    def entities(self) -> List[Entity]:
        return list(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: int) -> bool:
        return entity_id in self._entities

    def spawn(self) -> Entity:
        cfg = self.config
        size = self.rng.uniform(*cfg.size_range)
        speed = self.rng.uniform(*cfg.speed_range)
        x = self.rng.random() * cfg.display_width

        # за дальним краем, лететь к ближнему
        if cfg.direction == UP:
            y = cfg.display_height + size
        else:
            y = -size

        entity = Entity(id=next(self._ids), x=x, y=y, size=size, speed=speed)
        self._entities[entity.id] = entity
        return entity

    def advance(self) -> List[Entity]:
        """Один тик движения. Возвращает пузыри, которые ушли за экран."""
        step_sign = -1 if self.config.direction == UP else 1
        moved = {}
        expired = []
        for e in self._entities.values():
            e = Entity(e.id, e.x, e.y + step_sign * e.speed, e.size, e.speed)
            if self._gone(e):
                expired.append(e)
            else:
                moved[e.id] = e
        self._entities = moved
        return expired

    def _gone(self, e: Entity) -> bool:
        if self.config.direction == UP:
            return e.y <= -e.size
        return e.y >= self.config.display_height + e.size

    def remove(self, ids: Iterable[int]) -> List[Entity]:
        removed = []
        for entity_id in ids:
            e = self._entities.pop(entity_id, None)
            if e is not None:
                removed.append(e)
        return removed
