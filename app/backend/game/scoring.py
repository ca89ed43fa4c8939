from __future__ import annotations

import math
from typing import FrozenSet, Iterable

from .entities import Entity, EntitySimulation
from .pointer import Cursor


def hit_test(cursor: Cursor, entities: Iterable[Entity]) -> FrozenSet[int]:
    """id всех пузырей, в которые курсор попал на этом тике."""
    hits = set()
    for e in entities:
        if math.hypot(e.x - cursor.x, e.y - cursor.y) < e.radius:
            hits.add(e.id)
    return frozenset(hits)


class CollisionEngine:
    """
    Сначала собираем все попадания тика, потом удаляем их разом и прибавляем к счёту их количество.
    Удалять по одному, перебирая тот же набор, нельзя.
    """

    def __init__(self, simulation: EntitySimulation):
        self.simulation = simulation
        self.score = 0

    def apply(self, cursor: Cursor) -> int:
        hits = hit_test(cursor, self.simulation.entities)
        if not hits:
            return 0
        removed = self.simulation.remove(hits)
        self.score += len(removed)
        return len(removed)
