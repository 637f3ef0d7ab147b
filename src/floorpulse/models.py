from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import Optional, Tuple

Vector3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Reading:
    temperature: float
    barometric_pressure: float
    co2: float
    voc: float
    accuracy: int
    movement: str


def validate_reading(reading: Reading) -> None:
    for name in ("temperature", "barometric_pressure", "co2", "voc"):
        if not math.isfinite(getattr(reading, name)):
            raise ValueError(f"Reading {name} must be a finite number.")
    if reading.barometric_pressure <= 0:
        raise ValueError("Reading barometric_pressure must be positive.")
    if reading.accuracy < 0:
        raise ValueError("Reading accuracy must be non-negative.")
    if not reading.movement:
        raise ValueError("Reading movement must be set.")


class LocationKind:
    CALIBRATING = "calibrating"
    OUTSIDE = "outside"
    INSIDE = "inside"


@dataclass(frozen=True)
class LocationState:
    """Classified whereabouts of the wearer for a single reading.

    ``floor`` is only set for ``LocationKind.INSIDE``.
    """

    kind: str
    floor: Optional[int] = None

    @classmethod
    def calibrating(cls) -> "LocationState":
        return cls(kind=LocationKind.CALIBRATING)

    @classmethod
    def outside(cls) -> "LocationState":
        return cls(kind=LocationKind.OUTSIDE)

    @classmethod
    def inside(cls, floor: int) -> "LocationState":
        return cls(kind=LocationKind.INSIDE, floor=int(floor))

    @property
    def is_inside(self) -> bool:
        return self.kind == LocationKind.INSIDE

    @property
    def is_outside(self) -> bool:
        return self.kind == LocationKind.OUTSIDE

    @property
    def label(self) -> str:
        if self.kind == LocationKind.INSIDE:
            return f"Inside on Floor {self.floor}"
        if self.kind == LocationKind.OUTSIDE:
            return "Outside"
        return "Calibrating"


_INSIDE_LABEL = re.compile(r"^inside(?:\s+on)?(?:\s+floor)?\s+(-?\d+)$")


def parse_location_label(text: str) -> LocationState:
    """Read back a label such as ``"Inside on Floor 2"`` or ``"inside:2"``."""
    lowered = " ".join(text.lower().replace(":", " ").split())
    if lowered == "outside":
        return LocationState.outside()
    if lowered == "calibrating":
        return LocationState.calibrating()
    match = _INSIDE_LABEL.match(lowered)
    if match is None:
        raise ValueError(f"Unrecognized location label: {text!r}.")
    return LocationState.inside(int(match.group(1)))


class MarkerKind:
    OUTSIDE = "outside"
    INSIDE = "inside"

    ALL = (OUTSIDE, INSIDE)


@dataclass
class Marker:
    marker_id: int
    kind: str
    position: Vector3
    opacity: float
    scale: Vector3 = (1.0, 1.0, 1.0)
