from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Optional

import numpy as np
import mediapipe as mp

from .keypoints import HandKeypoints

MODEL_FILE = "hand_landmarker.task"


class HandLandmarkerEstimator:
    """
    MediaPipe Tasks HandLandmarker в режиме VIDEO, одна рука.
    Вызывать только из одного потока (см. HandKeypointSource).
    """
    def __init__(
        self,
        model_path: Optional[str] = None,
        min_hand_detection_confidence: float = 0.5,
        min_hand_presence_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        self.model_path = self._resolve_model_path(model_path)

        BaseOptions = mp.tasks.BaseOptions
        HandLandmarker = mp.tasks.vision.HandLandmarker
        HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
        RunningMode = mp.tasks.vision.RunningMode

        options = HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(self.model_path)),
            running_mode=RunningMode.VIDEO,
            num_hands=1,
            min_hand_detection_confidence=min_hand_detection_confidence,
            min_hand_presence_confidence=min_hand_presence_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

        self._landmarker = HandLandmarker.create_from_options(options)
        self._last_ts_ms = 0

    def close(self) -> None:
        self._landmarker.close()

    @staticmethod
    def _resolve_model_path(model_path: Optional[str]) -> Path:
        """
        Ищем hand_landmarker.task.
        Приоритет:
          1) явный аргумент model_path
          2) env REHAB_HAND_TASK_PATH
          3) корень репозитория
          4) рядом с этим файлом
          5) текущая директория
        """
        if model_path:
            p = Path(model_path).expanduser().resolve()
            if not p.exists():
                raise FileNotFoundError(f"{MODEL_FILE} not found: {p}")
            return p

        envp = os.getenv("REHAB_HAND_TASK_PATH", "").strip()
        if envp:
            p = Path(envp).expanduser().resolve()
            if not p.exists():
                raise FileNotFoundError(f"REHAB_HAND_TASK_PATH points to a missing file: {p}")
            return p

        here = Path(__file__).resolve()
        # .../app/backend/ml/landmarker.py -> repo root = parents[3]
        candidates = [
            here.parents[3] / MODEL_FILE,
            here.parent / MODEL_FILE,
            Path.cwd() / MODEL_FILE,
        ]
        for c in candidates:
            if c.exists():
                return c.resolve()

        raise FileNotFoundError(
            f"{MODEL_FILE} not found.\n"
            "Put it in the repository root or set REHAB_HAND_TASK_PATH."
        )

    def _ensure_ts(self, ts_ms: int) -> int:
        # MediaPipe требует монотонно возрастающий timestamp_ms.
        if ts_ms <= self._last_ts_ms:
            ts_ms = self._last_ts_ms + 1
        self._last_ts_ms = ts_ms
        return ts_ms

    def detect(self, frame_bgr: np.ndarray, ts_ms: Optional[int] = None) -> Optional[HandKeypoints]:
        """
        frame_bgr: np.ndarray (H,W,3), uint8
        Возвращает точки первой руки в пикселях кадра или None, если руки нет.
        """
        if frame_bgr is None or frame_bgr.ndim != 3 or frame_bgr.shape[2] != 3:
            return None

        if ts_ms is None:
            ts_ms = int(time.monotonic() * 1000)
        ts_ms = self._ensure_ts(int(ts_ms))

        # BGR -> RGB
        frame_rgb = frame_bgr[:, :, ::-1].copy()

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        result = self._landmarker.detect_for_video(mp_image, ts_ms)

        if not result.hand_landmarks:
            return None

        h, w = frame_bgr.shape[:2]
        return HandKeypoints.from_normalized(result.hand_landmarks[0], w, h)
