from __future__ import annotations

from dataclasses import dataclass, field
import logging
import queue
import threading
import time
from typing import Callable, Optional, Union

from .controller import StateController

LOGGER = logging.getLogger(__name__)

Frame = Union[bytes, str]


@dataclass
class EngineRunner:
    """Single consumer for inbound frames and the fixed-rate tick driver.

    Sources only ever put raw frames on ``frames``; everything that touches
    the controller happens inside ``run_once``.
    """

    controller: StateController
    tick_rate_hz: float = 60.0
    frames: "queue.Queue[Frame]" = field(default_factory=queue.Queue)
    max_frames_per_tick: int = 32
    on_tick: Optional[Callable[[int], None]] = None
    ticks: int = field(default=0, init=False)
    _stop_event: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _thread: Optional[threading.Thread] = field(default=None, init=False, repr=False)

    def submit(self, frame: Frame) -> None:
        self.frames.put(frame)

    def run_once(self) -> int:
        """Drain pending frames, then advance the markers by one tick."""
        handled = 0
        while handled < self.max_frames_per_tick:
            try:
                frame = self.frames.get_nowait()
            except queue.Empty:
                break
            self.controller.handle_frame(frame)
            handled += 1
        self.controller.tick()
        self.ticks += 1
        if self.on_tick is not None:
            self.on_tick(self.ticks)
        return handled

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="floorpulse-engine",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout_seconds: float = 1.0) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout_seconds)

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def run_forever(self, max_ticks: int = 0) -> None:
        interval = 1.0 / max(self.tick_rate_hz, 0.1)
        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            self.run_once()
            if max_ticks and self.ticks >= max_ticks:
                break
            next_tick += interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                next_tick = time.monotonic()
                delay = 0.0
            if self._stop_event.wait(delay):
                break

    def _run(self) -> None:
        try:
            self.run_forever()
        except Exception:  # pragma: no cover - logged for the background thread
            LOGGER.exception("Engine loop stopped unexpectedly")
            raise
