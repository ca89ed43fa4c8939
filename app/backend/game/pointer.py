from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.backend.ml.keypoints import HandKeypoints


@dataclass(frozen=True)
class Cursor:
    x: float
    y: float


class PointerMapper:
    """
    Точка руки (в пикселях кадра) -> курсор на экране.
    По X зеркалим, чтобы движение выглядело как в зеркале, по Y просто масштабируем.
    Если руки в кадре нет, курсор остаётся на месте: детекция шумная от кадра к кадру.
    """

    def __init__(self, display_width: float, display_height: float, landmark: int = 8):
        self.display_width = display_width
        self.display_height = display_height
        self.landmark = landmark
        self.cursor: Optional[Cursor] = None

    def map_point(self, x: float, y: float, image_width: float, image_height: float) -> Cursor:
        screen_x = self.display_width - (x / image_width) * self.display_width
        screen_y = (y / image_height) * self.display_height
        return Cursor(screen_x, screen_y)

    def update(self, keypoints: Optional[HandKeypoints]) -> bool:
        """True, если курсор пересчитан на этом тике."""
        if keypoints is None:
            return False
        point = keypoints.point(self.landmark)
        if point is None:
            return False
        self.cursor = self.map_point(point.x, point.y, keypoints.image_width, keypoints.image_height)
        return True

    def reset(self) -> None:
        self.cursor = None
