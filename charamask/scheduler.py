"""Frame scheduling: a paced frame loop and the animation state machine."""

import enum
import logging
import time
from typing import Callable, Optional

from .errors import SurfaceLost

logger = logging.getLogger(__name__)

# Timing
TARGET_FPS = 30
MAX_FRAME_DT = 0.08  # seconds; bounds one step after a stall

FrameCallback = Callable[[float], None]


class FrameLoop:
    """Single-threaded frame source.

    Holds at most one armed frame callback and runs it once per frame,
    sleeping off whatever is left of the frame budget. Subclasses hook
    input handling into `poll()`.
    """

    def __init__(
        self,
        fps: float = TARGET_FPS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.frame_time = 1.0 / fps
        self.clock = clock
        self.sleep = sleep
        self._pending: Optional[tuple[int, FrameCallback]] = None
        self._handles = 0
        self._resize_listeners: list[Callable[[], None]] = []

    def now(self) -> float:
        """Current host time in seconds."""
        return self.clock()

    def request_frame(self, callback: FrameCallback) -> int:
        """Arm `callback` for the next frame, replacing any armed one."""
        self._handles += 1
        self._pending = (self._handles, callback)
        return self._handles

    def cancel_frame(self, handle: int) -> None:
        """Disarm the frame armed under `handle`, if it is still pending."""
        if self._pending is not None and self._pending[0] == handle:
            self._pending = None

    @property
    def armed(self) -> bool:
        return self._pending is not None

    def add_resize_listener(self, callback: Callable[[], None]) -> None:
        """Call `callback` on every size change until removed."""
        if callback not in self._resize_listeners:
            self._resize_listeners.append(callback)

    def remove_resize_listener(self, callback: Callable[[], None]) -> None:
        """Stop notifying `callback`; unknown callbacks are ignored."""
        if callback in self._resize_listeners:
            self._resize_listeners.remove(callback)

    def notify_resize(self) -> None:
        """Tell every listener that the surface size may have changed."""
        for callback in list(self._resize_listeners):
            callback()

    def poll(self) -> None:
        """Handle input between frames. Does nothing by default."""

    def run_once(self) -> bool:
        """Run the armed frame, if any. Returns False once nothing is armed."""
        started = self.clock()
        self.poll()
        if self._pending is None:
            return False
        _, callback = self._pending
        self._pending = None
        callback(self.clock())

        # Frame pacing
        sleep_time = self.frame_time - (self.clock() - started)
        if sleep_time > 0:
            self.sleep(sleep_time)
        return True

    def run(self) -> None:
        while self.run_once():
            pass


class SchedulerState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class AnimationScheduler:
    """Drives `on_frame(dt)` from a frame host.

    Only one tick is ever armed, and the next one is armed after the
    current callback returns. Options must not be changed from inside
    `on_frame`.
    """

    def __init__(
        self,
        host: FrameLoop,
        on_frame: FrameCallback,
        on_resize: Callable[[], None],
        on_lost: Optional[Callable[[SurfaceLost], None]] = None,
        max_dt: float = MAX_FRAME_DT,
    ):
        self.host = host
        self.on_frame = on_frame
        self.on_resize = on_resize
        self.on_lost = on_lost
        self.max_dt = max_dt
        self.paused = False
        self.last = 0.0
        self._handle: Optional[int] = None

    @property
    def state(self) -> SchedulerState:
        if self._handle is None:
            return SchedulerState.STOPPED
        return SchedulerState.PAUSED if self.paused else SchedulerState.RUNNING

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Arm the first tick and follow resizes. No-op while running."""
        if self._handle is not None:
            return
        self.last = self.host.now()
        self._handle = self.host.request_frame(self._tick)
        self.host.add_resize_listener(self._on_resize)
        logger.info("Animation started")

    def pause(self) -> None:
        """Keep ticking without simulating or drawing."""
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def stop(self) -> None:
        """Cancel the armed tick and stop following resizes."""
        if self._handle is None:
            return
        self.host.cancel_frame(self._handle)
        self._handle = None
        self.host.remove_resize_listener(self._on_resize)
        logger.info("Animation stopped")

    def clamp_dt(self, now: float) -> float:
        """Seconds since the last tick, bounded to [0, max_dt]."""
        return min(self.max_dt, max(0.0, now - self.last))

    def _tick(self, now: float) -> None:
        if self.paused:
            self.last = now
            self._rearm()
            return

        dt = self.clamp_dt(now)
        try:
            self.on_frame(dt)
        except SurfaceLost as exc:
            logger.error("Surface lost, stopping animation: %s", exc)
            self.stop()
            if self.on_lost is not None:
                self.on_lost(exc)
            return
        except Exception:
            logger.exception("Frame failed, stopping animation")
            self.stop()
            raise
        self.last = now
        self._rearm()

    def _rearm(self) -> None:
        # stop() may have been called from inside the frame callback
        if self._handle is not None:
            self._handle = self.host.request_frame(self._tick)

    def _on_resize(self) -> None:
        self.on_resize()
