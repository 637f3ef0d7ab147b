from __future__ import annotations

import math

from .config import Configuration
from .models import LocationState, Reading

SEA_LEVEL_SCALE_METERS = 44330.0
BAROMETRIC_EXPONENT = 0.1903
FLOOR_HEIGHT_METERS = 3.0


def barometric_altitude(pressure_hpa: float, reference_pressure_hpa: float) -> float:
    """Altitude in meters above the reference pressure level."""
    if pressure_hpa <= 0 or reference_pressure_hpa <= 0:
        raise ValueError("Barometric pressures must be positive.")
    ratio = pressure_hpa / reference_pressure_hpa
    return SEA_LEVEL_SCALE_METERS * (1.0 - ratio**BAROMETRIC_EXPONENT)


def estimate_floor(altitude_meters: float, floor_height: float = FLOOR_HEIGHT_METERS) -> int:
    """Nearest floor to ``altitude_meters``; ties round away from zero (1.5 -> 2)."""
    storeys = altitude_meters / floor_height
    return int(math.copysign(math.floor(abs(storeys) + 0.5), storeys))


def classify(reading: Reading, config: Configuration) -> LocationState:
    if reading.accuracy == 0:
        return LocationState.calibrating()
    if reading.co2 > config.co2_limit or reading.voc > config.voc_limit:
        altitude = barometric_altitude(
            reading.barometric_pressure, config.reference_pressure_hpa
        )
        return LocationState.inside(estimate_floor(altitude))
    return LocationState.outside()
