"""Grid geometry derived from surface size and cell size."""

import math
from dataclasses import dataclass

from .options import MIN_CELL_SIZE


def pixel_scale_for(ratio) -> int:
    """Integer device pixel scale, never below 1."""
    try:
        ratio = float(ratio or 1)
    except (TypeError, ValueError):
        ratio = 1.0
    if not math.isfinite(ratio):
        ratio = 1.0
    return max(1, math.floor(ratio))


def backing_size(width: float, height: float, pixel_scale: int) -> tuple[int, int]:
    """Backing buffer size in device pixels for a surface of `width`x`height`."""
    return (
        max(1, math.floor(width * pixel_scale)),
        max(1, math.floor(height * pixel_scale)),
    )


@dataclass(frozen=True)
class GridGeometry:
    """Column/row counts and cell size for one surface size."""

    columns: int
    rows: int
    cell_size: float
    pixel_scale: int = 1
    backing_width: int = 1
    backing_height: int = 1

    @classmethod
    def compute(cls, width: float, height: float, cell_size: float, pixel_scale=1) -> "GridGeometry":
        """Fit a grid of `cell_size` squares into a `width`x`height` surface."""
        scale = pixel_scale_for(pixel_scale)
        cell = max(MIN_CELL_SIZE, cell_size)
        backing_width, backing_height = backing_size(width, height, scale)
        return cls(
            columns=max(1, math.floor(width / cell)),
            rows=max(1, math.floor(height / cell)),
            cell_size=cell,
            pixel_scale=scale,
            backing_width=backing_width,
            backing_height=backing_height,
        )

    @property
    def cells(self) -> int:
        return self.columns * self.rows

    def matches(self, width: float, height: float, pixel_scale=1) -> bool:
        """True when a surface of this size would not need a new grid."""
        scale = pixel_scale_for(pixel_scale)
        return (
            scale == self.pixel_scale
            and backing_size(width, height, scale) == (self.backing_width, self.backing_height)
        )
