from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Dict, Mapping, Union

from ..models import Reading, validate_reading

FIELD_DELIMITER = ";"
KEY_SEPARATOR = ":"
REQUIRED_FIELDS = ("temp", "baro", "co2", "voc", "accuracy", "movement")

_DECIMAL = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_INTEGER = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class MalformedFrame(ValueError):
    message: str

    def __str__(self) -> str:
        return self.message


def decode_frame(payload: Union[bytes, bytearray, str]) -> str:
    """Decode a BLE notification payload into frame text."""
    if isinstance(payload, str):
        return payload
    try:
        return bytes(payload).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedFrame(
            _format_message(f"Frame is not valid UTF-8: {exc}.", payload)
        ) from exc


def parse_frame(raw: Union[bytes, bytearray, str]) -> Reading:
    """Parse a ``key:value;`` telemetry frame into a Reading.

    Fields may appear in any order and unknown fields are ignored. Either all
    six required fields parse or ``MalformedFrame`` is raised.
    """
    text = decode_frame(raw)
    fields = split_fields(text)
    missing = [name for name in REQUIRED_FIELDS if name not in fields]
    if missing:
        raise MalformedFrame(
            _format_message(f"Missing required field(s): {', '.join(missing)}.", text)
        )

    reading = Reading(
        temperature=_require_decimal(fields, "temp", text),
        barometric_pressure=_require_decimal(fields, "baro", text),
        co2=_require_decimal(fields, "co2", text),
        voc=_require_decimal(fields, "voc", text),
        accuracy=_require_integer(fields, "accuracy", text),
        movement=_require_label(fields, "movement", text),
    )
    try:
        validate_reading(reading)
    except ValueError as exc:
        raise MalformedFrame(_format_message(str(exc), text)) from exc
    return reading


def split_fields(text: str) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for segment in text.split(FIELD_DELIMITER):
        if KEY_SEPARATOR not in segment:
            continue
        key, value = segment.split(KEY_SEPARATOR, 1)
        key = key.strip().lower()
        if key and key not in fields:
            fields[key] = value.strip()
    return fields


def _require_decimal(fields: Mapping[str, str], field: str, text: str) -> float:
    value = fields[field]
    if not _DECIMAL.match(value):
        raise MalformedFrame(
            _format_message(f"Field '{field}' must be a decimal number; received {value!r}.", text)
        )
    return float(value)


def _require_integer(fields: Mapping[str, str], field: str, text: str) -> int:
    value = fields[field]
    if not _INTEGER.match(value):
        raise MalformedFrame(
            _format_message(f"Field '{field}' must be an integer; received {value!r}.", text)
        )
    return int(value)


def _require_label(fields: Mapping[str, str], field: str, text: str) -> str:
    value = fields[field]
    if not value:
        raise MalformedFrame(_format_message(f"Field '{field}' must not be empty.", text))
    return value


def _format_message(message: str, frame: object) -> str:
    return f"Telemetry frame error: {message} (frame={frame!r})."
