#!/usr/bin/env python3
"""Print a scripted walk of telemetry frames for ``floorpulse --replay -``."""

from __future__ import annotations

import argparse
import sys
import time

REFERENCE_PRESSURE_HPA = 1013.25
FLOOR_HEIGHT_METERS = 3.0


def pressure_for_floor(floor: int, reference: float = REFERENCE_PRESSURE_HPA) -> float:
    altitude = floor * FLOOR_HEIGHT_METERS
    return reference * (1.0 - altitude / 44330.0) ** (1.0 / 0.1903)


def build_frame(
    *,
    baro: float,
    co2: float,
    voc: float,
    accuracy: int = 3,
    temp: float = 22.5,
    movement: str = "walking",
) -> str:
    return (
        f"temp:{temp:.2f};baro:{baro:.2f};co2:{co2:.0f};voc:{voc:.2f};"
        f"accuracy:{accuracy};movement:{movement};"
    )


def scripted_walk() -> list[str]:
    return [
        build_frame(baro=REFERENCE_PRESSURE_HPA, co2=420, voc=0.2, accuracy=0),
        build_frame(baro=REFERENCE_PRESSURE_HPA, co2=420, voc=0.2),
        build_frame(baro=pressure_for_floor(0), co2=780, voc=0.9),
        build_frame(baro=pressure_for_floor(1), co2=820, voc=1.1),
        build_frame(baro=pressure_for_floor(2), co2=900, voc=1.3, movement="not moving"),
        build_frame(baro=REFERENCE_PRESSURE_HPA, co2=410, voc=0.1),
    ]


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit demo telemetry frames.")
    parser.add_argument("--interval", type=float, default=0.0)
    parser.add_argument("--loops", type=int, default=1)
    args = parser.parse_args()

    for _ in range(max(args.loops, 1)):
        for frame in scripted_walk():
            sys.stdout.write(frame + "\n")
            sys.stdout.flush()
            if args.interval:
                time.sleep(args.interval)


if __name__ == "__main__":
    main()
