"""Telemetry sources and the frame parser."""

from .ble_link import (
    CHARACTERISTIC_UUID,
    DEVICE_NAME,
    SERVICE_UUID,
    BleLinkConfig,
    BleTelemetryLink,
    ConnectionFailure,
)
from .frame import MalformedFrame, decode_frame, parse_frame
from .orchestrator import FrameSource, IngestionOrchestrator
from .replay import ReplaySource
from .serial_link import SerialLinkConfig, SerialLinkError, SerialTelemetryAdapter

__all__ = [
    "BleLinkConfig",
    "BleTelemetryLink",
    "CHARACTERISTIC_UUID",
    "ConnectionFailure",
    "DEVICE_NAME",
    "FrameSource",
    "IngestionOrchestrator",
    "MalformedFrame",
    "ReplaySource",
    "SERVICE_UUID",
    "SerialLinkConfig",
    "SerialLinkError",
    "SerialTelemetryAdapter",
    "decode_frame",
    "parse_frame",
]
