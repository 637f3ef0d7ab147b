from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

from .config import Configuration, InvalidConfiguration, SceneConfig, SettingsStore
from .controller import StateController
from .display import LiveReadingDisplay, print_frame
from .indicators import IndicatorPool
from .ingestion import (
    BleLinkConfig,
    BleTelemetryLink,
    IngestionOrchestrator,
    ReplaySource,
    SerialLinkConfig,
    SerialTelemetryAdapter,
)
from .models import LocationKind, parse_location_label
from .runtime import EngineRunner

LOGGER = logging.getLogger(__name__)


def _load_config(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _require_mapping(value: object, label: str) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise InvalidConfiguration(f"{label} must be an object.")
    return value


def _require_float(value: object, label: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"{label} must be numeric.")


def _require_int(value: object, label: str) -> int:
    number = _require_float(value, label)
    if not number.is_integer():
        raise InvalidConfiguration(f"{label} must be an integer.")
    return int(number)


def _require_vector(value: object, length: int, label: str) -> Tuple[float, ...]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)) or len(value) != length:
        raise InvalidConfiguration(f"{label} must be a list of {length} numbers.")
    return tuple(_require_float(item, label) for item in value)


def _parse_settings(payload: Mapping[str, object]) -> Configuration:
    defaults = Configuration()
    store = SettingsStore(defaults)
    return store.save(
        co2_limit=payload.get("co2_limit", defaults.co2_limit),
        voc_limit=payload.get("voc_limit", defaults.voc_limit),
        reference_pressure=payload.get(
            "reference_pressure_hpa", defaults.reference_pressure_hpa
        ),
    )


def _parse_scene_config(payload: Mapping[str, object]) -> SceneConfig:
    defaults = SceneConfig()
    outside_anchor = payload.get("outside_anchor")
    inside_anchor = payload.get("inside_anchor")
    scene = SceneConfig(
        outside_anchor=(
            _require_vector(outside_anchor, 3, "scene.outside_anchor")
            if outside_anchor is not None
            else defaults.outside_anchor
        ),
        inside_anchor=(
            _require_vector(inside_anchor, 2, "scene.inside_anchor")
            if inside_anchor is not None
            else defaults.inside_anchor
        ),
        floor_spacing=_require_float(
            payload.get("floor_spacing", defaults.floor_spacing), "scene.floor_spacing"
        ),
        outside_cap=_require_int(
            payload.get("outside_cap", defaults.outside_cap), "scene.outside_cap"
        ),
        inside_cap=_require_int(
            payload.get("inside_cap", defaults.inside_cap), "scene.inside_cap"
        ),
    )
    if scene.outside_cap < 1 or scene.inside_cap < 1:
        raise InvalidConfiguration("scene marker caps must be at least 1.")
    return scene


def _parse_ble_config(payload: Mapping[str, object], device_name: Optional[str]) -> BleLinkConfig:
    defaults = BleLinkConfig()
    offline_frames = payload.get("offline_frames", [])
    if not isinstance(offline_frames, Sequence) or isinstance(offline_frames, (str, bytes)):
        raise InvalidConfiguration("ble.offline_frames must be a list.")
    return BleLinkConfig(
        device_name=device_name or str(payload.get("device_name", defaults.device_name)),
        service_uuid=str(payload.get("service_uuid", defaults.service_uuid)),
        characteristic_uuid=str(
            payload.get("characteristic_uuid", defaults.characteristic_uuid)
        ),
        scan_timeout_seconds=_require_float(
            payload.get("scan_timeout_seconds", defaults.scan_timeout_seconds),
            "ble.scan_timeout_seconds",
        ),
        offline=bool(payload.get("offline", False)),
        offline_frames=tuple(str(frame) for frame in offline_frames),
    )


def _parse_serial_config(payload: Mapping[str, object], port: str) -> SerialLinkConfig:
    defaults = SerialLinkConfig(port=port)
    return SerialLinkConfig(
        port=port,
        baudrate=_require_int(payload.get("baudrate", defaults.baudrate), "serial.baudrate"),
        timeout_seconds=_require_float(
            payload.get("timeout_seconds", defaults.timeout_seconds), "serial.timeout_seconds"
        ),
    )


def _apply_setting_overrides(settings: SettingsStore, args: argparse.Namespace) -> None:
    if args.co2_limit is None and args.voc_limit is None and args.reference_pressure is None:
        return
    current = settings.current
    try:
        settings.save(
            co2_limit=current.co2_limit if args.co2_limit is None else args.co2_limit,
            voc_limit=current.voc_limit if args.voc_limit is None else args.voc_limit,
            reference_pressure=(
                current.reference_pressure_hpa
                if args.reference_pressure is None
                else args.reference_pressure
            ),
        )
    except InvalidConfiguration as exc:
        LOGGER.error("Settings not saved, keeping previous values: %s", exc)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _start_source(
    args: argparse.Namespace,
    config: Mapping[str, object],
    runner: EngineRunner,
    controller: StateController,
) -> Optional[object]:
    """Start the selected telemetry source; returns an object with ``stop()``."""
    if args.simulate:
        location = parse_location_label(args.simulate)
        if location.kind == LocationKind.INSIDE:
            controller.simulate_inside(location.floor)
        elif location.kind == LocationKind.OUTSIDE:
            controller.simulate_outside()
        else:
            controller.apply_location(location)
        return None

    if args.replay:
        replay = ReplaySource(sys.stdin) if args.replay == "-" else ReplaySource.open(args.replay)
        orchestrator = IngestionOrchestrator(
            source=replay,
            submit=runner.submit,
            poll_interval_seconds=args.replay_interval,
            source_name="replay",
        )
        orchestrator.start()
        return orchestrator

    if args.serial_port:
        serial_payload = _require_mapping(config.get("serial", {}), "serial")
        adapter = SerialTelemetryAdapter(_parse_serial_config(serial_payload, args.serial_port))
        orchestrator = IngestionOrchestrator(
            source=adapter,
            submit=runner.submit,
            poll_interval_seconds=0.0,
            source_name="serial",
        )
        orchestrator.start()
        return orchestrator

    ble_payload = _require_mapping(config.get("ble", {}), "ble")
    display = controller.display
    link = BleTelemetryLink(
        _parse_ble_config(ble_payload, args.device_name),
        on_frame=runner.submit,
        on_status=display.show_status if display is not None else None,
    )
    link.start()
    return link


def build_engine(
    config: Mapping[str, object],
    display: object,
    tick_rate_hz: float,
) -> Tuple[SettingsStore, EngineRunner]:
    settings_payload = _require_mapping(config.get("settings", {}), "settings")
    scene_payload = _require_mapping(config.get("scene", {}), "scene")

    settings = SettingsStore(_parse_settings(settings_payload))
    pool = IndicatorPool(scene=_parse_scene_config(scene_payload), renderer=display)
    controller = StateController(settings=settings, pool=pool, display=display)
    runner = EngineRunner(controller=controller, tick_rate_hz=tick_rate_hz)
    return settings, runner


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Show wearable telemetry as pulsing floor markers on a building."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--ble",
        action="store_true",
        help="Pair with the wearable over BLE (default when no other source is given).",
    )
    source.add_argument(
        "--serial-port",
        help="Read frames from a USB/UART port instead of BLE.",
    )
    source.add_argument(
        "--replay",
        help="Replay frames from a file, one per line ('-' for stdin).",
    )
    source.add_argument(
        "--simulate",
        help="Show a fixed location without telemetry, e.g. 'outside' or 'inside:2'.",
    )
    parser.add_argument("--config", help="Path to a JSON configuration file.")
    parser.add_argument("--device-name", help="BLE device name to pair with.")
    parser.add_argument("--co2-limit", help="CO2 limit in ppm.")
    parser.add_argument("--voc-limit", help="VOC index limit.")
    parser.add_argument("--reference-pressure", help="Pressure at floor 0 in hPa.")
    parser.add_argument(
        "--tick-rate",
        type=float,
        default=60.0,
        help="Marker animation ticks per second (default: 60).",
    )
    parser.add_argument(
        "--replay-interval",
        type=float,
        default=1.0,
        help="Seconds between replayed frames (default: 1.0).",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Render to the terminal instead of a pygame window.",
    )
    parser.add_argument(
        "--refresh-every",
        type=int,
        default=15,
        help="Redraw the terminal view every N ticks when headless (default: 15).",
    )
    parser.add_argument(
        "--floors",
        type=int,
        default=4,
        help="Number of floors drawn for the building (default: 4).",
    )
    parser.add_argument(
        "--fullscreen",
        action="store_true",
        help="Run the overlay full screen.",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=0,
        help="Stop after N ticks (0 = run until interrupted).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO).",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    config: Mapping[str, object] = {}
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            raise FileNotFoundError(f"Config not found: {config_path}")
        config = _require_mapping(_load_config(config_path), "config")

    if args.headless:
        scene_payload = _require_mapping(config.get("scene", {}), "scene")
        display = LiveReadingDisplay(
            floor_spacing=_parse_scene_config(scene_payload).floor_spacing,
            floors=max(args.floors, 1),
        )
    else:
        from .overlay import OverlayState

        display = OverlayState()

    settings, runner = build_engine(config, display, args.tick_rate)
    _apply_setting_overrides(settings, args)
    source = _start_source(args, config, runner, runner.controller)

    try:
        if args.headless:
            refresh_every = max(args.refresh_every, 1)

            def _refresh(ticks: int) -> None:
                if ticks % refresh_every == 0:
                    print_frame(display.render())

            runner.on_tick = _refresh
            runner.run_forever(max_ticks=max(args.max_ticks, 0))
        else:
            from .overlay import run_overlay

            run_overlay(
                runner,
                display,
                fps=int(max(args.tick_rate, 1)),
                windowed=not args.fullscreen,
                floors=max(args.floors, 1),
                max_ticks=max(args.max_ticks, 0),
            )
    except KeyboardInterrupt:
        return 0
    finally:
        if source is not None:
            source.stop()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
