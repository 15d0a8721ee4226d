"""Shared fixtures: fake surfaces, a fake clock and seeded randomness."""

import random

import pytest

from charamask.errors import SurfaceLost
from charamask.scheduler import FrameLoop


class FakeContext:
    """Records draw calls instead of painting them."""

    def __init__(self):
        self.calls = []
        self.clears = 0
        self.presents = 0
        self.lost = False

    def clear(self):
        if self.lost:
            raise SurfaceLost("context gone")
        self.clears += 1
        self.calls = []

    def fill_text(self, text, x, y, *, alpha, color, font_size):
        self.calls.append((text, x, y, alpha, color, font_size))

    def present(self):
        self.presents += 1


class FakeSurface:
    def __init__(self, width=360, height=180, pixel_ratio=1, context=True):
        self.width = width
        self.height = height
        self.pixel_ratio = pixel_ratio
        self.context = FakeContext() if context else None

    def get_context(self):
        return self.context

    def size(self):
        return self.width, self.height


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start
        self.slept = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.slept.append(seconds)


def fire(loop: FrameLoop, clock: FakeClock, at: float) -> bool:
    """Move the clock to `at` and run the armed frame, if any."""
    clock.now = at
    return loop.run_once()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def loop(clock):
    return FrameLoop(fps=30, clock=clock, sleep=clock.sleep)
