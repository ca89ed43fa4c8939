class GameError(Exception):
    """Базовое исключение игрового ядра."""


class ModelLoadError(GameError):
    def __init__(self, reason: str = "model load failed"):
        super().__init__(reason)
        self.reason = reason


class CameraError(GameError):
    """
    Камеру не удалось открыть, или поток перестал отдавать кадры.
    reason: "permission denied" | "unsupported browser" | "camera unavailable" |
            "timed out waiting for camera" | "stream lost"
    """
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class EstimatorError(GameError):
    """Инференс упал посреди раунда."""
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidTransition(GameError):
    def __init__(self, current, target):
        super().__init__(f"cannot go from {current.value} to {target.value}")
        self.current = current
        self.target = target


class PlayAgainUnavailable(GameError):
    pass


class UnknownGame(GameError):
    pass
