from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class Keypoint:
    x: float  # пиксели кадра
    y: float
    confidence: Optional[float] = None


@dataclass(frozen=True)
class HandKeypoints:
    """Одна рука: 21 точка MediaPipe в координатах исходного кадра."""
    points: Tuple[Keypoint, ...]
    image_width: int
    image_height: int

    def point(self, index: int) -> Optional[Keypoint]:
        if 0 <= index < len(self.points):
            return self.points[index]
        return None

    @classmethod
    def from_normalized(cls, landmarks: Sequence, image_width: int, image_height: int) -> "HandKeypoints":
        """landmarks: NormalizedLandmark из MediaPipe (x, y в 0..1)."""
        points = []
        for lm in landmarks:
            conf = getattr(lm, "presence", None)
            points.append(Keypoint(lm.x * image_width, lm.y * image_height, conf))
        return cls(tuple(points), image_width, image_height)
