from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from app.backend.api.deps import get_config
from app.backend.api.schemas.game import GameOut
from app.backend.game.catalog import GameSpec, get_game, list_games
from app.backend.game.config import GameConfig
from app.backend.game.errors import UnknownGame

router = APIRouter(prefix="/api/v1", tags=["games"])


def _game_out(game: GameSpec, config: GameConfig) -> GameOut:
    return GameOut(**asdict(game), round_duration=config.round_duration)


@router.get("/games", response_model=list[GameOut])
def list_all_games(config: GameConfig = Depends(get_config)):
    return [_game_out(g, config) for g in list_games()]


@router.get("/games/{slug}", response_model=GameOut)
def get_one_game(slug: str, config: GameConfig = Depends(get_config)):
    try:
        game = get_game(slug)
    except UnknownGame:
        raise HTTPException(404, "Game not found")
    return _game_out(game, config)
