"""Matrix-style terminal rain driven by the glyph rain engine."""

import argparse
import curses
import locale
import logging
import random
import signal
import sys
from typing import Callable, Optional, Union

from .engine import CharamaskEngine
from .errors import InvalidSurface, SurfaceLost
from .options import DIRECTIONS, EngineOptions, normalize_options
from .scheduler import TARGET_FPS, FrameLoop

logger = logging.getLogger(__name__)

# Terminal requirements
MIN_WIDTH = 20
MIN_HEIGHT = 10

# Color pair indices
COLOR_HEAD = 1
COLOR_BRIGHT = 2
COLOR_MEDIUM = 3
COLOR_DIM = 4

# Trail shades relative to the configured color (bright, medium, dim)
SHADES = (1.0, 0.84, 0.69)

# xterm 256-color cube channel levels
CUBE_LEVELS = (0, 95, 135, 175, 215, 255)

BASIC_COLORS = {
    "black": (0, 0, 0),
    "red": (255, 0, 0),
    "green": (0, 255, 0),
    "yellow": (255, 255, 0),
    "blue": (0, 0, 255),
    "magenta": (255, 0, 255),
    "cyan": (0, 255, 255),
    "white": (255, 255, 255),
}

KEY_ESC = 27


def parse_color(color: str) -> tuple[int, int, int]:
    """Parse '#rgb', '#rrggbb' or a basic color name; unknown colors fall back to green."""
    value = str(color).strip().lower()
    if value in BASIC_COLORS:
        return BASIC_COLORS[value]
    digits = value[1:] if value.startswith("#") else value
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    try:
        if len(digits) != 6:
            raise ValueError(digits)
        return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        logger.warning("Unsupported color %r, using green", color)
        return BASIC_COLORS["green"]


def cube_index(rgb: tuple[int, int, int]) -> int:
    """Nearest xterm 256-color cube entry."""
    r, g, b = (min(range(6), key=lambda i: abs(CUBE_LEVELS[i] - c)) for c in rgb)
    return 16 + 36 * r + 6 * g + b


def basic_color(rgb: tuple[int, int, int]) -> int:
    """Nearest of the eight standard curses colors."""
    name = min(
        BASIC_COLORS,
        key=lambda n: sum((a - b) ** 2 for a, b in zip(BASIC_COLORS[n], rgb)),
    )
    return getattr(curses, f"COLOR_{name.upper()}")


def color_level(alpha: float) -> int:
    """Color pair for a cell of the given intensity."""
    if alpha >= 1.0:
        return COLOR_HEAD  # White head
    if alpha >= 0.66:
        return COLOR_BRIGHT
    elif alpha >= 0.33:
        return COLOR_MEDIUM
    else:
        return COLOR_DIM


class TerminalSurface:
    """A curses window as an engine surface.

    Each terminal character stands for a `char_px` square, so a grid
    whose cell size equals `char_px` maps one cell to one character.
    """

    pixel_ratio = 1

    def __init__(
        self,
        stdscr,
        char_px: int = 18,
        palette: Optional[dict[int, int]] = None,
        color: Optional[str] = None,
    ):
        self.stdscr = stdscr
        self.char_px = char_px
        self.palette = palette
        self.color = color
        self.prev_frame: dict[tuple[int, int], tuple[str, int]] = {}
        self.frame: dict[tuple[int, int], tuple[str, int]] = {}
        self._dims = None

    def dims(self) -> tuple[int, int]:
        """Terminal size in characters, as (columns, rows)."""
        height, width = self.stdscr.getmaxyx()
        return width, height

    def size(self) -> tuple[int, int]:
        """Terminal size in pixels."""
        width, height = self.dims()
        return width * self.char_px, height * self.char_px

    def get_context(self) -> Optional["TerminalSurface"]:
        """The surface draws itself; None when the terminal is too small."""
        width, height = self.dims()
        if width < MIN_WIDTH or height < MIN_HEIGHT:
            logger.error(
                "Terminal too small: %dx%d. Minimum size: %dx%d.",
                width, height, MIN_WIDTH, MIN_HEIGHT,
            )
            return None
        return self

    def use_color(self, color: str) -> None:
        """Initialize color pairs for a gradient of `color` with a white head."""
        if not curses.has_colors():
            raise InvalidSurface("Terminal does not support colors.")
        rgb = parse_color(color)
        if curses.COLORS >= 256:
            curses.init_pair(COLOR_HEAD, 255, -1)
            for pair, shade in zip((COLOR_BRIGHT, COLOR_MEDIUM, COLOR_DIM), SHADES):
                curses.init_pair(pair, cube_index(tuple(int(c * shade) for c in rgb)), -1)
        else:
            # Fallback to 8-color mode
            curses.init_pair(COLOR_HEAD, curses.COLOR_WHITE, -1)
            for pair in (COLOR_BRIGHT, COLOR_MEDIUM, COLOR_DIM):
                curses.init_pair(pair, basic_color(rgb), -1)
        self.palette = {pair: curses.color_pair(pair) for pair in range(COLOR_HEAD, COLOR_DIM + 1)}
        self.color = color

    # Drawing context

    def clear(self) -> None:
        """Start a new frame, wiping the screen after a resize."""
        dims = self.dims()
        if dims != self._dims:
            # Resized: nothing on screen can be trusted
            self._dims = dims
            self.prev_frame = {}
            try:
                self.stdscr.clear()
            except curses.error as exc:
                raise SurfaceLost(f"Cannot clear terminal: {exc}") from exc
        self.frame = {}

    def fill_text(
        self, text: str, x: float, y: float, *, alpha: float, color: str, font_size: float
    ) -> None:
        """Queue `text` at pixel (x, y) in the shade matching `alpha`."""
        if color != self.color:
            self.use_color(color)
        width, height = self._dims
        col, row = int(x // self.char_px), int(y // self.char_px)
        if not (0 <= col < width and 0 <= row < height):
            return
        # Avoid bottom-right corner (curses quirk)
        if col == width - 1 and row == height - 1:
            return
        self.frame[(col, row)] = (text, color_level(alpha))

    def present(self) -> None:
        """Draw only what changed since the previous frame."""
        for col, row in self.prev_frame:
            if (col, row) not in self.frame:
                try:
                    self.stdscr.addch(row, col, " ")
                except curses.error:
                    pass

        for (col, row), (char, level) in self.frame.items():
            if self.prev_frame.get((col, row)) != (char, level):
                try:
                    self.stdscr.addch(row, col, char, self.palette[level])
                except curses.error:
                    pass

        self.prev_frame = self.frame
        try:
            self.stdscr.refresh()
        except curses.error as exc:
            raise SurfaceLost(f"Cannot refresh terminal: {exc}") from exc


class TerminalHost(FrameLoop):
    """Frame loop that also reads keys from the terminal between frames."""

    def __init__(self, stdscr, fps: float = TARGET_FPS, **kwargs):
        super().__init__(fps, **kwargs)
        self.stdscr = stdscr
        self.key_handlers: dict[int, Callable[[], None]] = {}

    def bind(self, key: Union[str, int], handler: Callable[[], None]) -> None:
        """Call `handler` when `key` (a character or key code) is pressed."""
        self.key_handlers[ord(key) if isinstance(key, str) else key] = handler

    def poll(self) -> None:
        """Read one key; resize keys notify listeners."""
        try:
            key = self.stdscr.getch()
        except curses.error:
            return
        if key == curses.KEY_RESIZE:
            self.notify_resize()
            return
        handler = self.key_handlers.get(key)
        if handler is not None:
            handler()


def setup_screen(stdscr) -> None:
    """Initialize curses settings."""
    # Initialize locale for proper Unicode rendering
    locale.setlocale(locale.LC_ALL, "")

    # Hide cursor (some terminals don't support this)
    try:
        curses.curs_set(0)
    except curses.error:
        pass

    # Non-blocking input
    stdscr.nodelay(True)
    stdscr.timeout(0)

    curses.start_color()
    curses.use_default_colors()
    stdscr.bkgd(" ", curses.color_pair(0))
    stdscr.clear()


def run(
    stdscr, options: EngineOptions, fps: float = TARGET_FPS, seed: Optional[int] = None
) -> Optional[SurfaceLost]:
    """Curses wrapper entry point. Returns the SurfaceLost error, if any."""
    setup_screen(stdscr)
    surface = TerminalSurface(stdscr, char_px=options.cell_size)
    surface.use_color(options.color)
    host = TerminalHost(stdscr, fps)
    engine = CharamaskEngine(surface, options, host=host, rng=random.Random(seed))

    def toggle_pause():
        if engine.scheduler.paused:
            engine.resume()
        else:
            engine.pause()

    host.bind("q", engine.stop)
    host.bind(KEY_ESC, engine.stop)
    host.bind("p", toggle_pause)

    engine.start()
    host.run()
    return engine.surface_lost


def build_parser() -> argparse.ArgumentParser:
    """Command line flags, one per engine option plus runtime settings."""
    defaults = EngineOptions()
    parser = argparse.ArgumentParser(
        prog="charamask",
        description="Matrix-style glyph rain in the terminal. Press q to quit, p to pause.",
    )
    parser.add_argument("--direction", choices=DIRECTIONS, default=defaults.direction)
    parser.add_argument("--color", default=defaults.color, help="'#rrggbb', '#rgb' or a basic color name")
    parser.add_argument("--density", default=defaults.density, help="0 to 10 (default: %(default)s)")
    parser.add_argument("--cell-size", default=defaults.cell_size, help="cell size in px; one terminal character per cell")
    parser.add_argument("--speed", default=defaults.speed, help="cells per second")
    parser.add_argument("--tail-min", default=defaults.tail_min)
    parser.add_argument("--tail-max", default=defaults.tail_max)
    parser.add_argument("--decay-rate", default=defaults.decay_rate, help="intensity lost per second")
    parser.add_argument("--no-limit", action="store_true", help="allow density outside 0..10")
    parser.add_argument("--fps", type=float, default=TARGET_FPS)
    parser.add_argument("--seed", type=int, default=None, help="seed for reproducible rain")
    parser.add_argument("--log-file", default=None, help="write log messages here instead of stderr")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def options_from_args(args: argparse.Namespace) -> EngineOptions:
    """Normalized engine options from parsed flags."""
    return normalize_options(EngineOptions(
        direction=args.direction,
        color=args.color,
        density=args.density,
        cell_size=args.cell_size,
        speed=args.speed,
        tail_min=args.tail_min,
        tail_max=args.tail_max,
        decay_rate=args.decay_rate,
        limit=not args.no_limit,
    ))


def signal_handler(signum, frame) -> None:
    """Handle Ctrl+C for clean exit."""
    sys.exit(0)


def main(argv: Optional[list[str]] = None) -> None:
    """Run the terminal rain until q, ESC or a signal."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        filename=args.log_file,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    options = options_from_args(args)

    # Register signal handlers before curses init
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Check TTY requirement
    if not sys.stdout.isatty():
        print("Error: Requires TTY.", file=sys.stderr)
        sys.exit(1)

    try:
        lost = curses.wrapper(run, options, args.fps, args.seed)
    except curses.error as e:
        print(
            f"Error: Cannot initialize terminal. "
            f"Ensure TERM is set and you're running in a supported terminal.\n"
            f"Details: {e}",
            file=sys.stderr,
        )
        sys.exit(1)
    except InvalidSurface as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if lost is not None:
        print(f"Error: {lost}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
