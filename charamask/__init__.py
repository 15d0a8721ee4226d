"""Grid-based falling glyph rain."""

from .engine import CharamaskEngine
from .errors import CharamaskError, InvalidOptions, InvalidSurface, SurfaceLost
from .geometry import GridGeometry
from .grid import ALPHABET, GlyphGrid
from .options import DOWN, UP, EngineOptions, normalize_options
from .sampler import DrawCall, sample
from .scheduler import MAX_FRAME_DT, AnimationScheduler, FrameLoop, SchedulerState
from .streaks import StreakController, activation_probability

__version__ = "0.1.0"

__all__ = [
    "ALPHABET",
    "DOWN",
    "MAX_FRAME_DT",
    "UP",
    "AnimationScheduler",
    "CharamaskEngine",
    "CharamaskError",
    "DrawCall",
    "EngineOptions",
    "FrameLoop",
    "GlyphGrid",
    "GridGeometry",
    "InvalidOptions",
    "InvalidSurface",
    "SchedulerState",
    "StreakController",
    "SurfaceLost",
    "activation_probability",
    "normalize_options",
    "sample",
]
