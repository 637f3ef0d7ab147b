from __future__ import annotations

from dataclasses import dataclass, field
import sys
import time
from typing import Dict, List, Mapping, Optional, TextIO

from .models import Marker, MarkerKind


@dataclass
class MarkerSnapshot:
    marker_id: int
    kind: str
    height: float
    opacity: float
    scale: float


@dataclass
class LiveReadingDisplay:
    """Terminal rendering of the latest reading, status line and marker stack."""

    floor_spacing: float = 5.0
    floors: int = 4
    bar_width: int = 30
    _fields: Dict[str, str] = field(default_factory=dict, init=False)
    _status: Optional[str] = field(default=None, init=False)
    _markers: Dict[int, MarkerSnapshot] = field(default_factory=dict, init=False)

    def show_reading(self, fields: Mapping[str, str]) -> None:
        self._fields = dict(fields)

    def show_status(self, message: str) -> None:
        self._status = message

    def create_marker(self, marker: Marker) -> None:
        self._markers[marker.marker_id] = _snapshot(marker)

    def update_marker(self, marker: Marker) -> None:
        self._markers[marker.marker_id] = _snapshot(marker)

    def remove_marker(self, marker_id: int) -> None:
        self._markers.pop(marker_id, None)

    @property
    def marker_ids(self) -> List[int]:
        return sorted(self._markers)

    def render(self, now: Optional[float] = None) -> str:
        if now is None:
            now = time.time()
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(now))
        lines = ["Building Pulse View", f"Updated: {timestamp}"]
        if self._status:
            lines.append(f"Status: {self._status}")
        lines.append("")
        lines.extend(self._render_fields())
        lines.append("")
        lines.extend(self._render_floors())
        return "\n".join(lines)

    def _render_fields(self) -> List[str]:
        if not self._fields:
            return ["Waiting for telemetry..."]
        width = max(len(label) for label in self._fields)
        return [f"{label.ljust(width)} : {value}" for label, value in self._fields.items()]

    def _render_floors(self) -> List[str]:
        lines = ["Markers (top floor first):"]
        by_floor: Dict[int, List[MarkerSnapshot]] = {}
        for marker in self._markers.values():
            if marker.kind == MarkerKind.INSIDE:
                floor = round(marker.height / max(self.floor_spacing, 1e-3))
                by_floor.setdefault(floor, []).append(marker)
        top = max([self.floors - 1, *by_floor])
        bottom = min([0, *by_floor])
        for floor in range(top, bottom - 1, -1):
            lines.append(f"Floor {floor:>2} |{self._bar(by_floor.get(floor, []))}")
        outside = [
            marker for marker in self._markers.values() if marker.kind == MarkerKind.OUTSIDE
        ]
        lines.append(f"Outside  |{self._bar(outside)}")
        return lines

    def _bar(self, markers: List[MarkerSnapshot]) -> str:
        if not markers:
            return ""
        strongest = max(marker.opacity for marker in markers)
        filled = int(round(strongest / 0.5 * self.bar_width))
        return "#" * filled + f" ({len(markers)})"


def _snapshot(marker: Marker) -> MarkerSnapshot:
    return MarkerSnapshot(
        marker_id=marker.marker_id,
        kind=marker.kind,
        height=marker.position[1],
        opacity=marker.opacity,
        scale=marker.scale[0],
    )


def print_frame(content: str, stream: Optional[TextIO] = None) -> None:
    if stream is None:
        stream = sys.stdout
    stream.write("\033[2J\033[H")
    stream.write(content)
    stream.write("\n")
    stream.flush()
