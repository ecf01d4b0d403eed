"""
Frame Scheduling for Racing Line Telemetry

This module provides the cooperative frame loop that drives the motion
simulator: start(callback) invokes callback(delta_time) once per frame until
stop() releases the scheduled handle.
"""

import asyncio
import logging
import time
from typing import Callable, Optional, Protocol

from . import constants

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class FrameScheduler(Protocol):
    running: bool

    def start(self, callback: FrameCallback) -> None: ...

    def stop(self) -> None: ...


class AsyncioFrameScheduler:
    """
    Frame loop on an asyncio event loop.

    Each frame is a call_later handle; the callback receives the measured
    elapsed time since the previous frame. stop() cancels the pending handle,
    and frames scheduled by an earlier start() are ignored after a restart. A
    callback that raises stops the loop; the exception goes to the event loop's
    exception handler.
    """

    def __init__(self, fps: float = constants.NOMINAL_FPS,
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 clock: Callable[[], float] = time.monotonic):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps!r}")
        self.interval = 1.0 / fps
        self._loop = loop
        self._clock = clock
        self._handle: Optional[asyncio.TimerHandle] = None
        self._callback: Optional[FrameCallback] = None
        self._generation = 0
        self._last_time = 0.0

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: FrameCallback) -> None:
        if self.running:
            raise RuntimeError("Frame loop already running; stop() it first")
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        self._callback = callback
        self._generation += 1
        self._last_time = self._clock()
        self._schedule(self._generation)
        logger.debug("Frame loop started at %.1f fps", 1.0 / self.interval)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._callback is not None:
            logger.debug("Frame loop stopped")
        self._callback = None
        self._generation += 1

    def _schedule(self, generation: int) -> None:
        self._handle = self._loop.call_later(self.interval, self._frame, generation)

    def _frame(self, generation: int) -> None:
        if generation != self._generation or self._callback is None:
            return
        now = self._clock()
        delta_time = max(now - self._last_time, 0.0)
        self._last_time = now
        try:
            self._callback(delta_time)
        except Exception:
            logger.error("Frame callback failed; stopping frame loop")
            if generation == self._generation:
                self.stop()
            raise
        # the callback may have stopped or restarted the loop
        if generation == self._generation:
            self._schedule(generation)


class ManualScheduler:
    """Deterministic scheduler advanced explicitly, for tests and offline replay."""

    def __init__(self):
        self._callback: Optional[FrameCallback] = None
        self.frames = 0

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: FrameCallback) -> None:
        if self.running:
            raise RuntimeError("Frame loop already running; stop() it first")
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def advance(self, delta_time: float, frames: int = 1) -> int:
        """Run up to `frames` frames of delta_time; returns how many ran."""
        ran = 0
        for _ in range(frames):
            if self._callback is None:
                break
            try:
                self._callback(delta_time)
            except Exception:
                self.stop()
                raise
            self.frames += 1
            ran += 1
        return ran
