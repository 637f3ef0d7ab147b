"""Wearable air-quality telemetry shown as pulsing floor markers on a building."""

from .classifier import barometric_altitude, classify, estimate_floor
from .config import Configuration, InvalidConfiguration, SceneConfig, SettingsStore
from .controller import EngineState, ReadingDisplay, StateController
from .display import LiveReadingDisplay
from .indicators import IndicatorPool, MarkerRenderer
from .ingestion import ConnectionFailure, MalformedFrame, parse_frame
from .models import (
    LocationKind,
    LocationState,
    Marker,
    MarkerKind,
    Reading,
    parse_location_label,
    validate_reading,
)
from .runtime import EngineRunner

__all__ = [
    "Configuration",
    "InvalidConfiguration",
    "SceneConfig",
    "SettingsStore",
    "Reading",
    "LocationKind",
    "LocationState",
    "Marker",
    "MarkerKind",
    "parse_location_label",
    "validate_reading",
    "MalformedFrame",
    "ConnectionFailure",
    "parse_frame",
    "barometric_altitude",
    "classify",
    "estimate_floor",
    "IndicatorPool",
    "MarkerRenderer",
    "EngineState",
    "ReadingDisplay",
    "StateController",
    "EngineRunner",
    "LiveReadingDisplay",
]
