import asyncio
import threading
from types import SimpleNamespace

import numpy as np
import pytest

from app.backend.game.errors import EstimatorError, ModelLoadError
from app.backend.ml.keypoints import HandKeypoints
from app.backend.ml.source import HandKeypointSource
from conftest import FakeStream, hand_at


class StubEstimator:
    def __init__(self, model_path=None):
        self.model_path = model_path
        self.calls = []
        self.closed = False

    def detect(self, frame, ts_ms):
        self.calls.append(ts_ms)
        return hand_at(1, 2)

    def close(self):
        self.closed = True


def broken_estimator(model_path=None):
    raise FileNotFoundError("hand_landmarker.task not found")


async def open_stream():
    return FakeStream()


def test_load_failure_becomes_model_load_error():
    async def scenario():
        src = HandKeypointSource(open_stream, estimator_factory=broken_estimator)
        with pytest.raises(ModelLoadError, match="model load failed"):
            await src.initialize()
        await src.close()

    asyncio.run(scenario())


def test_estimate_requires_initialize():
    async def scenario():
        src = HandKeypointSource(open_stream, estimator_factory=StubEstimator)
        with pytest.raises(RuntimeError):
            await src.estimate(np.zeros((4, 4, 3), np.uint8))
        await src.close()

    asyncio.run(scenario())


def test_estimate_runs_the_estimator_and_close_releases_it():
    async def scenario():
        src = HandKeypointSource(open_stream, model_path="x.task", estimator_factory=StubEstimator)
        await src.initialize()
        est = src._estimator
        assert est.model_path == "x.task"

        out = await src.estimate(np.zeros((4, 4, 3), np.uint8))
        assert out.point(8).x == 1 and out.point(8).y == 2
        assert len(est.calls) == 1

        stream = await src.open_camera()
        assert isinstance(stream, FakeStream)

        await src.close()
        assert est.closed

    asyncio.run(scenario())


def test_keypoints_from_normalized_landmarks():
    lms = [SimpleNamespace(x=i / 20, y=0.5, presence=0.8) for i in range(21)]
    kp = HandKeypoints.from_normalized(lms, 640, 480)
    assert len(kp.points) == 21
    assert kp.point(8).x == pytest.approx(8 / 20 * 640)
    assert kp.point(8).y == pytest.approx(240)
    assert kp.point(8).confidence == 0.8
    assert kp.point(21) is None


class CrashingEstimator(StubEstimator):
    def detect(self, frame, ts_ms):
        raise RuntimeError("graph crashed")


def test_inference_failure_becomes_estimator_error():
    async def scenario():
        src = HandKeypointSource(open_stream, estimator_factory=CrashingEstimator)
        await src.initialize()
        with pytest.raises(EstimatorError, match="graph crashed"):
            await src.estimate(np.zeros((4, 4, 3), np.uint8))
        await src.close()

    asyncio.run(scenario())


def test_close_during_model_load_releases_late_estimator():
    async def scenario():
        gate = threading.Event()
        made = []

        def slow_estimator(model_path=None):
            gate.wait(5)
            est = StubEstimator(model_path)
            made.append(est)
            return est

        src = HandKeypointSource(open_stream, estimator_factory=slow_estimator)
        loading = asyncio.create_task(src.initialize())
        await asyncio.sleep(0)

        await src.close()
        gate.set()
        with pytest.raises(ModelLoadError):
            await loading
        assert made[0].closed
        assert src._estimator is None

    asyncio.run(scenario())
