"""The glyph rain engine: grid, streaks and scheduler bound to a surface."""

import logging
import random
from typing import Optional

from .errors import InvalidSurface
from .geometry import GridGeometry
from .grid import GlyphGrid
from .options import EngineOptions, normalize_options
from .sampler import sample
from .scheduler import AnimationScheduler, FrameLoop
from .streaks import StreakController

logger = logging.getLogger(__name__)


class CharamaskEngine:
    """Grid-based "bit rain" drawn onto a borrowed surface.

    The surface must provide `get_context()` and `size()` (logical
    pixels) and may carry a `pixel_ratio`. The context receives
    `clear()`, `fill_text(...)` and `present()` once per frame.
    """

    def __init__(
        self,
        surface,
        options=None,
        host: Optional[FrameLoop] = None,
        rng: Optional[random.Random] = None,
    ):
        self.rng = rng or random.Random()
        self._options = normalize_options(options)
        self.streaks = StreakController(self.rng)
        self.grid = None
        self.geometry = None
        self.surface = None
        self.context = None
        self.surface_lost = None
        self.scheduler = AnimationScheduler(
            host if host is not None else FrameLoop(),
            on_frame=self._frame,
            on_resize=self.notify_resize,
            on_lost=self._on_lost,
        )
        self.attach(surface)

    @property
    def options(self) -> EngineOptions:
        return self._options

    @property
    def state(self):
        return self.scheduler.state

    def attach(self, surface) -> None:
        """Bind a (possibly new) surface and fit the grid to it."""
        get_context = getattr(surface, "get_context", None)
        context = get_context() if callable(get_context) else None
        if context is None:
            raise InvalidSurface(f"{surface!r} does not provide a 2D drawing context")
        self.surface = surface
        self.context = context
        self.surface_lost = None
        self.resize(hard=self.grid is None)

    def resize(self, hard: bool = False) -> bool:
        """Recompute geometry; returns True when buffers were reallocated."""
        width, height = self.surface.size()
        ratio = getattr(self.surface, "pixel_ratio", 1)
        if not hard and self.geometry is not None and self.geometry.matches(width, height, ratio):
            return False

        self.geometry = GridGeometry.compute(width, height, self._options.cell_size, ratio)
        self.grid = GlyphGrid(self.geometry.columns, self.geometry.rows, self.rng)
        self.streaks.seed(self.geometry.columns, self.geometry.rows, self._options)
        logger.debug(
            "Grid %dx%d (cell %spx, scale %d)",
            self.geometry.columns, self.geometry.rows,
            self.geometry.cell_size, self.geometry.pixel_scale,
        )
        return True

    def notify_resize(self) -> None:
        """Host hook for surface size changes. Does not advance time."""
        self.resize(hard=False)

    def set_options(self, options=None, **changes) -> None:
        """Merge new options in, rebuilding only what they affect."""
        if isinstance(options, EngineOptions):
            merged = options.merged(changes)
        else:
            merged = self._options.merged(dict(options or {}, **changes))
        merged = normalize_options(merged)

        cell_changed = merged.cell_size != self._options.cell_size
        direction_changed = merged.direction != self._options.direction
        self._options = merged
        if cell_changed:
            self.resize(hard=True)
        if direction_changed:
            self.streaks.seed(self.geometry.columns, self.geometry.rows, merged)

    def start(self) -> None:
        self.scheduler.start()

    def pause(self) -> None:
        self.scheduler.pause()

    def resume(self) -> None:
        self.scheduler.resume()

    def stop(self) -> None:
        self.scheduler.stop()

    def step(self, dt: float) -> None:
        """Advance the simulation by `dt` seconds."""
        self.grid.decay_and_reassign(dt, self._options.decay_rate)
        self.streaks.advance(dt, self.grid, self._options)

    def sample(self):
        return list(sample(self.grid))

    def draw(self) -> None:
        """Paint every visible cell onto the surface."""
        size = self.geometry.cell_size
        color = self._options.color
        context = self.context
        context.clear()
        for call in sample(self.grid):
            context.fill_text(
                call.glyph, call.column * size, call.row * size,
                alpha=call.intensity, color=color, font_size=size,
            )
        context.present()

    def _frame(self, dt: float) -> None:
        self.step(dt)
        self.draw()

    def _on_lost(self, exc) -> None:
        self.surface_lost = exc
