import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import numpy as np
import pytest


class RecordingSurface:
    """Headless DrawingSurface that records every call it receives."""

    def __init__(self, width=200, height=200):
        self._width = width
        self._height = height
        self.composite_operations = []
        self.clears = []
        self.gradients = []

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self._height

    def set_composite_operation(self, name):
        self.composite_operations.append(name)

    def clear_region(self, x, y, width, height):
        self.clears.append((x, y, width, height))

    def fill_rect_with_radial_gradient(self, x, y, width, height,
                                       inner_radius, outer_radius,
                                       center_x, center_y,
                                       inner_color, outer_color):
        self.gradients.append(dict(
            x=x, y=y, width=width, height=height,
            inner_radius=inner_radius, outer_radius=outer_radius,
            center_x=center_x, center_y=center_y,
            inner_color=inner_color, outer_color=outer_color,
        ))


class ScriptedClock:
    """Clock returning preset timestamps (seconds), one per call."""

    def __init__(self, times):
        self.times = list(times)
        self.calls = 0

    def __call__(self):
        value = self.times[self.calls]
        self.calls += 1
        return value


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def make_clock():
    return ScriptedClock
