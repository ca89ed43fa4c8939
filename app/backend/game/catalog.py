from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List

from .config import DOWN, UP, GameConfig
from .errors import UnknownGame


@dataclass(frozen=True)
class GameSpec:
    slug: str
    title: str
    description: str
    direction: str = UP
    landmark: int = 8

    def configure(self, base: GameConfig) -> GameConfig:
        return replace(base, direction=self.direction, landmark=self.landmark)


GAMES: Dict[str, GameSpec] = {
    g.slug: g
    for g in [
        GameSpec(
            slug="bubble-burst",
            title="Bubble Burst Challenge",
            description="Pop the rising bubbles with the tip of your index finger.",
            direction=UP,
            landmark=8,
        ),
        GameSpec(
            slug="falling-leaves",
            title="Falling Leaves",
            description="Catch the falling leaves with the middle of your palm.",
            direction=DOWN,
            landmark=9,
        ),
    ]
}


def list_games() -> List[GameSpec]:
    return list(GAMES.values())


def get_game(slug: str) -> GameSpec:
    try:
        return GAMES[slug]
    except KeyError:
        raise UnknownGame(f"The selected game '{slug}' could not be found.") from None
