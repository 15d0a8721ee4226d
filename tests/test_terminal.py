"""Tests for the curses host, using a fake window."""

import curses
import random

import pytest

from charamask import terminal
from charamask.engine import CharamaskEngine
from charamask.errors import InvalidSurface, SurfaceLost
from charamask.options import DOWN
from charamask.terminal import (
    COLOR_BRIGHT,
    COLOR_DIM,
    COLOR_HEAD,
    COLOR_MEDIUM,
    TerminalHost,
    TerminalSurface,
)

PALETTE = {COLOR_HEAD: 100, COLOR_BRIGHT: 200, COLOR_MEDIUM: 300, COLOR_DIM: 400}


class FakeScreen:
    def __init__(self, width=40, height=12):
        self.width = width
        self.height = height
        self.cells = {}
        self.writes = []
        self.keys = []
        self.refreshes = 0
        self.broken = False

    def getmaxyx(self):
        return self.height, self.width

    def clear(self):
        self.cells = {}

    def addch(self, y, x, ch, attr=0):
        self.writes.append((x, y, ch, attr))
        self.cells[(x, y)] = (ch, attr)

    def refresh(self):
        if self.broken:
            raise curses.error("refresh failed")
        self.refreshes += 1

    def getch(self):
        return self.keys.pop(0) if self.keys else -1


@pytest.fixture
def screen():
    return FakeScreen()


@pytest.fixture
def surface(screen):
    return TerminalSurface(screen, char_px=18, palette=PALETTE, color="#00ff00")


def paint(surface, cells):
    surface.clear()
    for col, row, ch, alpha in cells:
        surface.fill_text(ch, col * 18, row * 18, alpha=alpha, color="#00ff00", font_size=18)
    surface.present()


class TestColors:

    def test_parse_color(self):
        assert terminal.parse_color("#00ff00") == (0, 255, 0)
        assert terminal.parse_color("#0f0") == (0, 255, 0)
        assert terminal.parse_color("Cyan") == (0, 255, 255)
        assert terminal.parse_color("rgba(1,2,3)") == (0, 255, 0)

    def test_cube_index_matches_classic_greens(self):
        assert terminal.cube_index((0, 255, 0)) == 46
        assert terminal.cube_index((0, 214, 0)) == 40
        assert terminal.cube_index((0, 175, 0)) == 34

    def test_basic_color(self):
        assert terminal.basic_color((10, 240, 20)) == curses.COLOR_GREEN
        assert terminal.basic_color((250, 250, 240)) == curses.COLOR_WHITE

    def test_color_level(self):
        assert terminal.color_level(1.0) == COLOR_HEAD
        assert terminal.color_level(0.9) == COLOR_BRIGHT
        assert terminal.color_level(0.5) == COLOR_MEDIUM
        assert terminal.color_level(0.1) == COLOR_DIM


class TestTerminalSurface:

    def test_size_in_pixels(self, surface):
        assert surface.size() == (720, 216)

    def test_small_terminal_has_no_context(self):
        assert TerminalSurface(FakeScreen(10, 5)).get_context() is None

    def test_paints_cells_with_intensity_colors(self, surface, screen):
        paint(surface, [(1, 2, "A", 1.0), (3, 4, "b", 0.2)])
        assert screen.cells == {(1, 2): ("A", 100), (3, 4): ("b", 400)}
        assert screen.refreshes == 1

    def test_only_changes_are_redrawn(self, surface, screen):
        paint(surface, [(1, 2, "A", 1.0), (3, 4, "b", 0.2)])
        screen.writes = []
        paint(surface, [(1, 2, "A", 1.0), (5, 5, "c", 0.5)])
        assert sorted(screen.writes) == [(3, 4, " ", 0), (5, 5, "c", 300)]

    def test_skips_bottom_right_corner(self, surface, screen):
        paint(surface, [(39, 11, "Z", 1.0), (40, 0, "Y", 1.0)])
        assert screen.cells == {}

    def test_resize_forgets_previous_frame(self, surface, screen):
        paint(surface, [(1, 1, "A", 1.0)])
        screen.width = 50
        screen.writes = []
        paint(surface, [(1, 1, "A", 1.0)])
        assert screen.writes == [(1, 1, "A", 100)]

    def test_failed_refresh_is_surface_lost(self, surface, screen):
        screen.broken = True
        with pytest.raises(SurfaceLost):
            paint(surface, [(1, 1, "A", 1.0)])

    def test_drives_engine(self, surface, screen, loop):
        engine = CharamaskEngine(surface, {"direction": DOWN}, host=loop, rng=random.Random(4))
        assert (engine.geometry.columns, engine.geometry.rows) == (40, 12)
        engine.grid.intensity[engine.grid.index(2, 3)] = 1.0
        engine.draw()
        assert screen.cells[(2, 3)] == (engine.grid.glyph_at(2, 3), 100)

    def test_engine_rejects_small_terminal(self, loop):
        with pytest.raises(InvalidSurface):
            CharamaskEngine(TerminalSurface(FakeScreen(5, 5)), host=loop)


class TestTerminalHost:

    def test_keys_dispatch_to_handlers(self, screen):
        host = TerminalHost(screen, sleep=lambda s: None)
        seen = []
        host.bind("q", lambda: seen.append("q"))
        host.bind(27, lambda: seen.append("esc"))
        screen.keys = [ord("q"), 27, ord("x")]
        host.poll()
        host.poll()
        host.poll()
        assert seen == ["q", "esc"]

    def test_resize_key_notifies(self, screen):
        host = TerminalHost(screen)
        seen = []
        host.add_resize_listener(lambda: seen.append(1))
        screen.keys = [curses.KEY_RESIZE]
        host.poll()
        assert seen == [1]

    def test_quit_key_ends_run(self, screen, surface):
        host = TerminalHost(screen, sleep=lambda s: None)
        engine = CharamaskEngine(surface, host=host, rng=random.Random(1))
        host.bind("q", engine.stop)
        engine.start()
        screen.keys = [-1, -1, ord("q")]
        host.run()
        assert screen.refreshes == 2
        assert not host.armed


class TestCommandLine:

    def test_options_from_args(self):
        args = terminal.build_parser().parse_args(
            ["--direction", "down", "--density", "12", "--tail-min", "9", "--tail-max", "4", "--color", "cyan"]
        )
        options = terminal.options_from_args(args)
        assert options.direction == "down"
        assert options.density == 10
        assert (options.tail_min, options.tail_max) == (4, 9)
        assert options.color == "cyan"

    def test_no_limit(self):
        args = terminal.build_parser().parse_args(["--no-limit", "--density", "14"])
        assert terminal.options_from_args(args).density == 14

    def test_requires_tty(self, monkeypatch, capsys):
        monkeypatch.setattr(terminal.signal, "signal", lambda *a: None)
        monkeypatch.setattr(terminal.sys.stdout, "isatty", lambda: False, raising=False)
        with pytest.raises(SystemExit) as exc:
            terminal.main([])
        assert exc.value.code == 1
        assert "TTY" in capsys.readouterr().err
