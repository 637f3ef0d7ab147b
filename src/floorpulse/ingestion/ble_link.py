from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
import threading
from typing import Callable, Optional, Sequence, Union

LOGGER = logging.getLogger(__name__)

DEVICE_NAME = "NiclaSenseME"
SERVICE_UUID = "12345678-1234-5678-1234-56789abcdef0"
CHARACTERISTIC_UUID = "abcdef01-1234-5678-1234-56789abcdef0"

STATUS_CONNECTED = f"Connected to {DEVICE_NAME}!"
STATUS_FAILED = f"Failed to connect to {DEVICE_NAME}!"


@dataclass(frozen=True)
class ConnectionFailure(RuntimeError):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class BleLinkConfig:
    device_name: str = DEVICE_NAME
    service_uuid: str = SERVICE_UUID
    characteristic_uuid: str = CHARACTERISTIC_UUID
    scan_timeout_seconds: float = 10.0
    offline: bool = False
    offline_frames: Sequence[str] = field(default_factory=tuple)


class BleTelemetryLink:
    """Pair with the wearable over BLE and forward each notification as a frame.

    Notifications arrive on the bleak event loop; ``on_frame`` should only
    enqueue them (see ``EngineRunner.submit``).
    """

    def __init__(
        self,
        config: BleLinkConfig,
        on_frame: Callable[[Union[bytes, str]], None],
        on_status: Optional[Callable[[str], None]] = None,
        scanner: Optional[type] = None,
        client_factory: Optional[Callable[[object], object]] = None,
    ) -> None:
        self._config = config
        self._on_frame = on_frame
        self._on_status = on_status
        self._scanner = scanner
        self._client_factory = client_factory
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stopped: Optional[asyncio.Event] = None
        self._thread: Optional[threading.Thread] = None
        self.failure: Optional[ConnectionFailure] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._run_in_thread,
            name="floorpulse-ble",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout_seconds: float = 2.0) -> None:
        if self._loop is not None and self._stopped is not None:
            self._loop.call_soon_threadsafe(self._stopped.set)
        if self._thread:
            self._thread.join(timeout=timeout_seconds)

    async def run(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stopped = asyncio.Event()
        if self._config.offline:
            self._report(STATUS_CONNECTED)
            for frame in self._config.offline_frames:
                self._on_frame(frame)
            return
        client = await self.connect()
        try:
            await self._stopped.wait()
        finally:
            await self._disconnect(client)

    async def connect(self) -> object:
        scanner, client_factory = self._resolve_backend()
        try:
            device = await scanner.find_device_by_name(
                self._config.device_name,
                timeout=self._config.scan_timeout_seconds,
            )
        except Exception as exc:
            # bleak reports a missing or powered-off adapter as BleakError.
            raise ConnectionFailure(f"BLE scan failed: {exc}") from exc
        if device is None:
            raise ConnectionFailure(
                f"No BLE device named '{self._config.device_name}' was found."
            )

        client = client_factory(device)
        try:
            await client.connect()
            service = client.services.get_service(self._config.service_uuid)
            if service is None:
                raise ConnectionFailure(
                    f"Service {self._config.service_uuid} not offered by "
                    f"'{self._config.device_name}'."
                )
            characteristic = service.get_characteristic(self._config.characteristic_uuid)
            if characteristic is None:
                raise ConnectionFailure(
                    f"Characteristic {self._config.characteristic_uuid} not found."
                )
            await client.start_notify(characteristic, self.handle_notification)
        except ConnectionFailure:
            await self._disconnect(client)
            raise
        except Exception as exc:
            await self._disconnect(client)
            raise ConnectionFailure(f"BLE connection failed: {exc}") from exc

        LOGGER.info("Subscribed to %s on %s", self._config.characteristic_uuid, device)
        self._report(STATUS_CONNECTED)
        return client

    def handle_notification(self, _sender: object, data: Union[bytes, bytearray]) -> None:
        self._on_frame(bytes(data))

    def _resolve_backend(self) -> tuple:
        scanner = self._scanner
        client_factory = self._client_factory
        if scanner is None or client_factory is None:
            try:
                from bleak import BleakClient, BleakScanner
            except ImportError as exc:
                raise ConnectionFailure(f"BLE support is unavailable: {exc}") from exc

            scanner = scanner or BleakScanner
            client_factory = client_factory or BleakClient
        return scanner, client_factory

    async def _disconnect(self, client: object) -> None:
        try:
            await client.disconnect()
        except Exception as exc:  # pragma: no cover - best effort on teardown
            LOGGER.debug("BLE disconnect failed: %s", exc)

    def _run_in_thread(self) -> None:
        try:
            asyncio.run(self.run())
        except ConnectionFailure as exc:
            self.failure = exc
            LOGGER.exception("BLE link failed: %s", exc)
            self._report(STATUS_FAILED)

    def _report(self, message: str) -> None:
        if self._on_status is not None:
            self._on_status(message)
