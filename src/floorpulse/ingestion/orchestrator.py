from __future__ import annotations

from dataclasses import dataclass, field
import logging
import threading
from typing import Callable, Optional, Protocol, Sequence

LOGGER = logging.getLogger(__name__)


class FrameSource(Protocol):
    def fetch(self) -> Sequence[str]: ...


@dataclass
class IngestionOrchestrator:
    """Poll a pull-style FrameSource and hand its frames to ``submit``."""

    source: FrameSource
    submit: Callable[[str], None]
    poll_interval_seconds: float = 0.05
    source_name: str = "telemetry"
    _stop_event: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _thread: Optional[threading.Thread] = field(default=None, init=False, repr=False)

    def poll(self) -> int:
        frames = self.source.fetch()
        for frame in frames:
            self.submit(frame)
        return len(frames)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"floorpulse-{self.source_name}",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout_seconds: float = 1.0) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout_seconds)
        close = getattr(self.source, "close", None)
        if close is not None:
            close()

    def _run(self) -> None:
        interval = max(self.poll_interval_seconds, 0.0)
        while not self._stop_event.is_set():
            try:
                count = self.poll()
            except Exception as exc:  # pragma: no cover - source failures
                LOGGER.exception("Source '%s' failed: %s", self.source_name, exc)
                return
            if getattr(self.source, "exhausted", False):
                LOGGER.info("Source '%s' exhausted", self.source_name)
                return
            LOGGER.debug("Source '%s' delivered %d frame(s)", self.source_name, count)
            self._stop_event.wait(interval)
