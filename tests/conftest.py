"""Shared fixtures: synthetic landmark samples and a frame-stepping driver."""

import pytest

from drowsiness_monitor.config import LEFT_EYE, RIGHT_EYE, MOUTH, TARGET_FPS
from drowsiness_monitor.dispatch import InlineDispatcher
from drowsiness_monitor.engine import DrowsinessEngine
from drowsiness_monitor.remote_store import InMemoryStore

NUM_LANDMARKS = 478
OPEN_EAR = 0.30
CLOSED_EAR = 0.15
MOUTH_OPEN = 0.10
MOUTH_CLOSED = 0.01


def eye_points(ear, origin_x, origin_y=0.4, width=0.1):
    """Six eye points whose EAR is exactly `ear`."""
    h = ear * width / 2.0
    return [
        (origin_x, origin_y),
        (origin_x + width / 3, origin_y - h),
        (origin_x + 2 * width / 3, origin_y - h),
        (origin_x + width, origin_y),
        (origin_x + 2 * width / 3, origin_y + h),
        (origin_x + width / 3, origin_y + h),
    ]


def make_landmarks(ear=OPEN_EAR, aperture=MOUTH_CLOSED):
    points = [(0.5, 0.5)] * NUM_LANDMARKS
    for idx, point in zip(LEFT_EYE, eye_points(ear, 0.30)):
        points[idx] = point
    for idx, point in zip(RIGHT_EYE, eye_points(ear, 0.60)):
        points[idx] = point
    points[MOUTH[0]] = (0.5, 0.7)
    points[MOUTH[1]] = (0.5, 0.7 + aperture)
    return points


class Driver:
    """Feeds samples at TARGET_FPS using integer frame numbers for timestamps."""

    def __init__(self, engine, fps=TARGET_FPS):
        self.engine = engine
        self.fps = fps
        self.frame = 0

    @property
    def now(self):
        return self.frame / self.fps

    def step(self, ear=OPEN_EAR, aperture=MOUTH_CLOSED):
        events = self.engine.analyze(make_landmarks(ear, aperture), self.now)
        self.frame += 1
        return events

    def run(self, frames, ear=OPEN_EAR, aperture=MOUTH_CLOSED):
        events = []
        for _ in range(frames):
            events.extend(self.step(ear, aperture))
        return events

    def blink(self, closed_frames=3, open_frames=3):
        return self.run(closed_frames, ear=CLOSED_EAR) + self.run(open_frames)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def engine(store):
    return DrowsinessEngine(store=store, dispatcher=InlineDispatcher(), clock=lambda: 0.0)


@pytest.fixture
def driver(engine):
    return Driver(engine)
