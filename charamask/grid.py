"""Per-cell glyph and intensity state."""

import random
import string
from typing import Optional

import numpy as np

ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase


class GlyphGrid:
    """Flat cell buffers for a `columns` x `rows` grid, indexed row-major.

    Every cell starts with a random glyph at intensity 0. A cell only
    changes glyph when its intensity decays to exactly 0.
    """

    def __init__(self, columns: int, rows: int, rng: Optional[random.Random] = None):
        self.columns = columns
        self.rows = rows
        self.rng = rng or random.Random()
        size = columns * rows
        self.glyphs: list[str] = [self.random_glyph() for _ in range(size)]
        self.intensity = np.zeros(size, dtype=np.float32)
        self.lit = np.zeros(size, dtype=bool)

    def __len__(self) -> int:
        return self.intensity.size

    def random_glyph(self) -> str:
        """Uniform pick from the alphabet."""
        return self.rng.choice(ALPHABET)

    def index(self, column: int, row: int) -> int:
        return row * self.columns + column

    def glyph_at(self, column: int, row: int) -> str:
        return self.glyphs[self.index(column, row)]

    def intensity_at(self, column: int, row: int) -> float:
        return float(self.intensity[self.index(column, row)])

    def is_lit(self, column: int, row: int) -> bool:
        return bool(self.lit[self.index(column, row)])

    def decay_and_reassign(self, dt: float, decay_rate: float) -> None:
        """Fade cells no streak lit last tick and clear every lit mark.

        A cell reaching 0 gets a fresh glyph so it never reappears with a
        stale one.
        """
        amount = max(0.0, decay_rate * dt)
        fading = ~self.lit & (self.intensity > 0)
        self.intensity[fading] -= amount
        np.clip(self.intensity, 0.0, 1.0, out=self.intensity)

        for i in np.flatnonzero(fading & (self.intensity == 0)):
            self.glyphs[i] = self.random_glyph()
        self.lit[:] = False

    def illuminate(self, index: int, target: float) -> None:
        """Raise a cell to `target`; brighter cells keep their intensity."""
        target = min(1.0, max(0.0, target))
        if target > self.intensity[index]:
            self.intensity[index] = target
        self.lit[index] = True
