from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Tuple

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.yml"

UP = "up"
DOWN = "down"


@dataclass(frozen=True)
class GameConfig:
    round_duration: int = 30          # секунд
    timer_interval: float = 1.0       # 1 Hz
    spawn_interval: float = 0.9
    motion_interval: float = 1 / 60   # ~60 Hz, не зависит от скорости инференса
    frame_interval: float = 0.0       # 0 => оцениваем каждый кадр, который успеваем
    size_range: Tuple[float, float] = (60.0, 140.0)
    speed_range: Tuple[float, float] = (0.5, 2.0)
    direction: str = UP
    landmark: int = 8                 # кончик указательного пальца
    display_width: int = 1280
    display_height: int = 720
    camera_timeout: float = 10.0

    def __post_init__(self):
        if self.round_duration <= 0:
            raise ValueError("round_duration must be positive")
        for name in ("timer_interval", "spawn_interval", "motion_interval", "camera_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.frame_interval < 0:
            raise ValueError("frame_interval must not be negative")
        lo, hi = self.size_range
        if not (0 < lo <= hi):
            raise ValueError(f"bad size_range: {self.size_range}")
        lo, hi = self.speed_range
        if not (0 < lo <= hi):
            raise ValueError(f"bad speed_range: {self.speed_range}")
        if self.direction not in (UP, DOWN):
            raise ValueError(f"direction must be '{UP}' or '{DOWN}'")
        if not (0 <= self.landmark <= 20):
            raise ValueError("landmark must be a MediaPipe hand landmark index (0..20)")
        if self.display_width <= 0 or self.display_height <= 0:
            raise ValueError("display size must be positive")

    def with_display(self, width: Optional[int], height: Optional[int]) -> "GameConfig":
        return replace(
            self,
            display_width=int(width or self.display_width),
            display_height=int(height or self.display_height),
        )


def _coerce(raw: dict) -> dict:
    known = {f.name for f in fields(GameConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"unknown game config keys: {sorted(unknown)}")

    out = dict(raw)
    for key in ("size_range", "speed_range"):
        if key in out:
            out[key] = tuple(float(v) for v in out[key])
    return out


def load_config(path: Optional[str] = None, **overrides) -> GameConfig:
    """
    Порядок: дефолты -> config.yml (или REHAB_GAME_CONFIG) -> overrides.
    Если файла нет, остаются дефолты.
    """
    if path is None:
        path = os.getenv("REHAB_GAME_CONFIG", "").strip() or str(DEFAULT_CONFIG_PATH)

    config_path = Path(path).expanduser()
    data: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{config_path}: expected a mapping at top level")

    data = _coerce({**data, **overrides})
    return GameConfig(**data)
