"""Engine options and their normalization."""

import dataclasses
import logging
import math
from dataclasses import dataclass

from .errors import InvalidOptions

logger = logging.getLogger(__name__)

UP = "up"
DOWN = "down"
DIRECTIONS = (UP, DOWN)

MIN_CELL_SIZE = 8
MAX_DENSITY = 10.0
# Past this the effect gets too busy to read, limited or not
DENSITY_WARN_LEVEL = 16.0


@dataclass
class EngineOptions:
    """Visual parameters of one engine instance."""

    direction: str = UP
    color: str = "#00ff00"
    density: float = 4.0
    cell_size: int = 18  # px
    speed: float = 22.0  # cells per second
    tail_min: int = 6  # cells
    tail_max: int = 18  # cells
    decay_rate: float = 1.2  # intensity per second
    limit: bool = True

    def merged(self, changes: dict) -> "EngineOptions":
        """Return a copy with `changes` applied; unknown names are rejected."""
        names = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(changes) - names)
        if unknown:
            raise InvalidOptions(f"Unknown option(s): {', '.join(unknown)}")
        return dataclasses.replace(self, **changes)


DEFAULTS = EngineOptions()
OPTION_NAMES = frozenset(f.name for f in dataclasses.fields(EngineOptions))


def known_options(values) -> dict:
    """Drop (and warn about) names that are not engine options."""
    values = dict(values)
    unknown = sorted(set(values) - OPTION_NAMES)
    if unknown:
        logger.warning("Ignoring unknown option(s): %s", ", ".join(unknown))
    return {name: value for name, value in values.items() if name in OPTION_NAMES}


def _number(name: str, value, default: float) -> float:
    """Coerce `value` to a finite float, falling back to `default`."""
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        number = math.nan
    if isinstance(value, bool) or not math.isfinite(number):
        logger.warning("Invalid %s %r, using default %s", name, value, default)
        return float(default)
    return number


def normalize_options(options=None) -> EngineOptions:
    """Return a sanitized copy of `options`.

    Bad values are never fatal: each one is replaced by its default or
    clamped into range, and a warning is logged. `options` may be an
    `EngineOptions`, a mapping of option names, or None for defaults.
    """
    if options is None:
        options = EngineOptions()
    elif not isinstance(options, EngineOptions):
        options = DEFAULTS.merged(known_options(options))

    direction = str(options.direction).strip().lower()
    if direction not in DIRECTIONS:
        logger.warning("Invalid direction %r, using %r", options.direction, UP)
        direction = UP

    limit = bool(options.limit)
    density = _number("density", options.density, DEFAULTS.density)
    if limit and not 0 <= density <= MAX_DENSITY:
        clamped = min(MAX_DENSITY, max(0.0, density))
        logger.warning(
            "density must be between 0 and %s when limit is on, got %s; using %s",
            MAX_DENSITY, density, clamped,
        )
        density = clamped
    elif not limit and density > DENSITY_WARN_LEVEL:
        logger.warning("density %s is very high and may render poorly", density)

    cell_size = int(_number("cell_size", options.cell_size, DEFAULTS.cell_size))
    if cell_size < MIN_CELL_SIZE:
        logger.warning("cell_size %s is too small, using %s", cell_size, MIN_CELL_SIZE)
        cell_size = MIN_CELL_SIZE

    speed = _number("speed", options.speed, DEFAULTS.speed)
    if speed < 1:
        logger.warning("speed %s is below 1 cell/s, using 1", speed)
        speed = 1.0

    tail_min = int(_number("tail_min", options.tail_min, DEFAULTS.tail_min))
    tail_max = int(_number("tail_max", options.tail_max, DEFAULTS.tail_max))
    if tail_min < 1 or tail_max < 1:
        logger.warning("Tail lengths must be at least 1, got %s..%s", tail_min, tail_max)
        tail_min, tail_max = max(1, tail_min), max(1, tail_max)
    if tail_min > tail_max:
        logger.warning("tail_min %s exceeds tail_max %s, swapping", tail_min, tail_max)
        tail_min, tail_max = tail_max, tail_min

    decay_rate = _number("decay_rate", options.decay_rate, DEFAULTS.decay_rate)
    if decay_rate < 0:
        logger.warning("decay_rate %s is negative, using %s", decay_rate, DEFAULTS.decay_rate)
        decay_rate = DEFAULTS.decay_rate

    return EngineOptions(
        direction=direction,
        color=str(options.color) if options.color else DEFAULTS.color,
        density=density,
        cell_size=cell_size,
        speed=speed,
        tail_min=tail_min,
        tail_max=tail_max,
        decay_rate=decay_rate,
        limit=limit,
    )
