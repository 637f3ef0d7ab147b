from __future__ import annotations

from dataclasses import dataclass
from typing import IO, List, Optional


@dataclass(frozen=True)
class SerialLinkError(RuntimeError):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class SerialLinkConfig:
    port: str
    baudrate: int = 115200
    timeout_seconds: float = 0.5
    max_lines: int = 20


class SerialTelemetryAdapter:
    """Read telemetry frames printed one per line by a USB-connected board."""

    def __init__(self, config: SerialLinkConfig, stream: Optional[IO[str]] = None) -> None:
        self._config = config
        self._stream = stream
        self._serial = None

    def fetch(self) -> List[str]:
        stream = self._ensure_stream()
        frames: List[str] = []
        for _ in range(self._config.max_lines):
            try:
                line = stream.readline()
            except OSError as exc:
                raise SerialLinkError(
                    f"Serial port {self._config.port} read failed: {exc}"
                ) from exc
            if not line:
                break
            if isinstance(line, bytes):
                line = line.decode("utf-8", errors="replace")
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            frames.append(line)
        return frames

    def close(self) -> None:
        if self._serial is not None:
            self._serial.close()
            self._serial = None

    def _ensure_stream(self) -> IO[str]:
        if self._stream is not None:
            return self._stream
        if self._serial is None:
            try:
                import serial  # type: ignore[import-not-found]
            except ImportError as exc:  # pragma: no cover - optional dependency
                raise SerialLinkError(
                    "pyserial is required to read telemetry over UART/USB."
                ) from exc
            try:
                self._serial = serial.Serial(
                    self._config.port,
                    baudrate=self._config.baudrate,
                    timeout=self._config.timeout_seconds,
                )
            except serial.SerialException as exc:
                raise SerialLinkError(
                    f"Could not open serial port {self._config.port}: {exc}"
                ) from exc
        return self._serial
