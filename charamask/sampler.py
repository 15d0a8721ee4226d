"""Turn grid state into draw calls."""

from typing import Iterator, NamedTuple

import numpy as np

from .grid import GlyphGrid


class DrawCall(NamedTuple):
    column: int
    row: int
    glyph: str
    intensity: float


def sample(grid: GlyphGrid) -> Iterator[DrawCall]:
    """Yield a draw call for every visible cell, row by row.

    Fully decayed cells produce nothing. The grid is only read.
    """
    intensity = grid.intensity
    for i in np.flatnonzero(intensity > 0):
        row, column = divmod(int(i), grid.columns)
        yield DrawCall(column, row, grid.glyphs[i], float(intensity[i]))
