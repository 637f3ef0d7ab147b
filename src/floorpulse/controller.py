from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Dict, Mapping, Optional, Protocol, Union

from .classifier import classify
from .config import SettingsStore
from .indicators import IndicatorPool
from .ingestion.frame import MalformedFrame, parse_frame
from .models import LocationState, Reading

LOGGER = logging.getLogger(__name__)


class ReadingDisplay(Protocol):
    def show_reading(self, fields: Mapping[str, str]) -> None: ...

    def show_status(self, message: str) -> None: ...


@dataclass
class EngineState:
    location: Optional[LocationState] = None
    reading: Optional[Reading] = None
    frames_accepted: int = 0
    frames_rejected: int = 0
    last_error: Optional[str] = None


class StateController:
    """Turn telemetry frames into a LocationState and keep the markers in step.

    ``handle_frame`` is the boundary used by the runtime loop: malformed frames
    are logged and reported, never raised. ``on_reading`` propagates them.
    """

    def __init__(
        self,
        settings: Optional[SettingsStore] = None,
        pool: Optional[IndicatorPool] = None,
        display: Optional[ReadingDisplay] = None,
    ) -> None:
        self.settings = settings if settings is not None else SettingsStore()
        self.pool = pool if pool is not None else IndicatorPool()
        self.display = display
        self._state = EngineState()

    @property
    def current_state(self) -> Optional[LocationState]:
        return self._state.location

    @property
    def state(self) -> EngineState:
        return replace(self._state)

    def on_reading(self, raw: Union[bytes, str]) -> LocationState:
        reading = parse_frame(raw)
        try:
            location = classify(reading, self.settings.current)
        except ValueError as exc:
            raise MalformedFrame(f"Reading cannot be classified: {exc}") from exc
        self._state.reading = reading
        self._state.frames_accepted += 1
        self.apply_location(location)
        return location

    def handle_frame(self, raw: Union[bytes, str]) -> Optional[LocationState]:
        try:
            return self.on_reading(raw)
        except MalformedFrame as exc:
            self._state.frames_rejected += 1
            self._state.last_error = str(exc)
            LOGGER.warning("Rejected telemetry frame: %s", exc)
            if self.display is not None:
                self.display.show_status(f"Rejected frame: {exc}")
            return None

    def apply_location(self, location: LocationState) -> None:
        previous = self._state.location
        self._state.location = location
        if previous != location:
            LOGGER.info("Location changed: %s", location.label)
        self.pool.reset()
        self.pool.seed_for(location)
        if self.display is not None:
            self.display.show_reading(self.display_fields())

    def simulate_outside(self) -> None:
        self.apply_location(LocationState.outside())

    def simulate_inside(self, floor: int) -> None:
        self.apply_location(LocationState.inside(floor))

    def tick(self) -> None:
        self.pool.tick(self._state.location)

    def display_fields(self) -> Dict[str, str]:
        fields: Dict[str, str] = {}
        reading = self._state.reading
        if reading is not None:
            fields.update(
                {
                    "Temperature": f"{reading.temperature:g} °C",
                    "Pressure": f"{reading.barometric_pressure:g} hPa",
                    "CO2": f"{reading.co2:g} ppm",
                    "VOC": f"{reading.voc:g}",
                    "Accuracy": str(reading.accuracy),
                    "Movement": reading.movement,
                }
            )
        location = self._state.location
        fields["Location"] = location.label if location is not None else ""
        return fields
