"""Per-column head-and-tail streaks."""

import math
import random
from typing import Optional

from .grid import GlyphGrid
from .options import DOWN, MAX_DENSITY, EngineOptions

# Activation curve: p = BASE + SCALE * (density / 10) ** EXPONENT (per second)
ACTIVATION_BASE = 0.06
ACTIVATION_SCALE = 0.08
ACTIVATION_EXPONENT = 0.9


def activation_probability(
    density: float,
    base: float = ACTIVATION_BASE,
    scale: float = ACTIVATION_SCALE,
    exponent: float = ACTIVATION_EXPONENT,
) -> float:
    """Per-second chance that an idle column spawns a streak."""
    d = min(MAX_DENSITY, max(0.0, density))
    return base + scale * (d / MAX_DENSITY) ** exponent


def tail_intensity(k: int, tail: int) -> float:
    """Intensity of the k-th cell behind the head (k=0 is the head)."""
    t = k / tail
    return 1 - t * t


class StreakController:
    """One streak per column: head position, tail length and active flag."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.heads: list[float] = []
        self.tails: list[int] = []
        self.active: list[bool] = []
        self.rows = 0

    def __len__(self) -> int:
        return len(self.heads)

    def random_tail(self, options: EngineOptions) -> int:
        return self.rng.randint(options.tail_min, options.tail_max)

    def seed(self, columns: int, rows: int, options: EngineOptions) -> None:
        """Reset every column, heads waiting off-screen on the entry side."""
        self.rows = rows
        going_down = options.direction == DOWN
        p = activation_probability(options.density)
        self.heads = []
        self.tails = []
        self.active = []
        for _ in range(columns):
            offset = self.rng.uniform(0, rows)
            self.heads.append(-offset if going_down else rows + offset)
            self.tails.append(self.random_tail(options))
            self.active.append(self.rng.random() < p)

    def activate(self, column: int, options: EngineOptions) -> None:
        self.active[column] = True
        self.tails[column] = self.random_tail(options)
        self.heads[column] = -1.0 if options.direction == DOWN else float(self.rows)

    def advance(self, dt: float, grid: GlyphGrid, options: EngineOptions) -> None:
        """Spawn, move, light and recycle the streak of every column."""
        rows = grid.rows
        self.rows = rows
        going_down = options.direction == DOWN
        delta = max(1.0, options.speed) * dt
        spawn_chance = activation_probability(options.density) * dt

        for column in range(len(self.heads)):
            if not self.active[column]:
                if self.rng.random() < spawn_chance:
                    self.activate(column, options)
                else:
                    continue

            self.heads[column] += delta if going_down else -delta
            head_row = math.floor(self.heads[column])
            tail = self.tails[column]

            for k in range(tail):
                row = head_row - k if going_down else head_row + k
                if row < 0 or row >= rows:
                    continue
                grid.illuminate(grid.index(column, row), tail_intensity(k, tail))

            if going_down and head_row - tail > rows:
                self.active[column] = False
            elif not going_down and head_row + tail < 0:
                self.active[column] = False
