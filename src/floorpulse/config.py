from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import threading
from typing import Optional, Tuple

LOGGER = logging.getLogger(__name__)


class InvalidConfiguration(ValueError):
    """Raised when a settings value cannot be applied."""


@dataclass(frozen=True)
class Configuration:
    """Thresholds used to classify a reading.

    ``reference_pressure_hpa`` is the barometric pressure measured on floor 0
    of the building being visualized.
    """

    co2_limit: float = 600.0
    voc_limit: float = 0.5
    reference_pressure_hpa: float = 1013.25


@dataclass(frozen=True)
class SceneConfig:
    outside_anchor: Tuple[float, float, float] = (-14.0, 0.0, -15.0)
    inside_anchor: Tuple[float, float] = (-14.0, -15.0)
    floor_spacing: float = 5.0
    outside_cap: int = 5
    inside_cap: int = 10
    initial_scale: float = 4.0
    initial_opacity: float = 0.5
    recycle_scale: float = 2.0
    opacity_decay: float = 0.004
    scale_growth: float = 0.02

    def inside_position(self, floor: int) -> Tuple[float, float, float]:
        x, z = self.inside_anchor
        return (x, floor * self.floor_spacing, z)


class SettingsStore:
    """Process-wide holder for the active Configuration.

    Values are swapped atomically by ``save``; a rejected save keeps the
    previous configuration.
    """

    def __init__(self, configuration: Optional[Configuration] = None) -> None:
        if configuration is None:
            configuration = Configuration()
        _require_setting(configuration.co2_limit, "CO2 limit")
        _require_setting(configuration.voc_limit, "VOC limit")
        _require_setting(configuration.reference_pressure_hpa, "Reference pressure at floor 0")
        self._configuration = _check_configuration(configuration)
        self._lock = threading.Lock()

    @property
    def current(self) -> Configuration:
        with self._lock:
            return self._configuration

    def save(
        self,
        *,
        co2_limit: object,
        voc_limit: object,
        reference_pressure: object,
    ) -> Configuration:
        updated = _check_configuration(
            Configuration(
                co2_limit=_require_setting(co2_limit, "CO2 limit"),
                voc_limit=_require_setting(voc_limit, "VOC limit"),
                reference_pressure_hpa=_require_setting(
                    reference_pressure, "Reference pressure at floor 0"
                ),
            )
        )
        with self._lock:
            self._configuration = updated
        LOGGER.info(
            "Settings saved: co2_limit=%s voc_limit=%s reference_pressure_hpa=%s",
            updated.co2_limit,
            updated.voc_limit,
            updated.reference_pressure_hpa,
        )
        return updated


def _check_configuration(configuration: Configuration) -> Configuration:
    if configuration.reference_pressure_hpa <= 0:
        raise InvalidConfiguration("Reference pressure at floor 0 must be positive.")
    return configuration


def _require_setting(value: object, label: str) -> float:
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"{label} must be numeric; received {value!r}.")
    if not math.isfinite(number):
        raise InvalidConfiguration(f"{label} must be a finite number.")
    return number
