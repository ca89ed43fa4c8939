from __future__ import annotations

from typing import Protocol

from .phase import PhaseEvent
from .round import RoundSnapshot


class PresentationSurface(Protocol):
    """Куда ядро отдаёт состояние для отрисовки. Вызовы синхронные, не должны блокировать."""

    def push_frame(self, snapshot: RoundSnapshot) -> None:
        ...

    def push_phase(self, event: PhaseEvent) -> None:
        ...
