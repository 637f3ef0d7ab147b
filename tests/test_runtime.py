from __future__ import annotations

import time

from floorpulse.controller import StateController
from floorpulse.models import LocationState, MarkerKind
from floorpulse.runtime import EngineRunner

OUTSIDE_FRAME = "temp:25;baro:1010;co2:400;voc:0.1;accuracy:3;movement:not moving;"
INSIDE_FRAME = "temp:25;baro:1013.25;co2:800;voc:1;accuracy:3;movement:not moving;"


def test_run_once_drains_frames_then_ticks() -> None:
    runner = EngineRunner(controller=StateController())
    runner.submit(INSIDE_FRAME)
    runner.submit(OUTSIDE_FRAME)

    handled = runner.run_once()

    assert handled == 2
    assert runner.ticks == 1
    assert runner.controller.current_state == LocationState.outside()
    # Seeded by the last reading, then one replenishment from the tick.
    assert runner.controller.pool.count(MarkerKind.OUTSIDE) == 2


def test_malformed_frames_do_not_stop_the_loop() -> None:
    runner = EngineRunner(controller=StateController())
    runner.submit("temp:25;")
    runner.submit(OUTSIDE_FRAME)

    runner.run_once()
    runner.run_once()

    state = runner.controller.state
    assert state.frames_rejected == 1
    assert state.frames_accepted == 1
    assert runner.ticks == 2


def test_run_once_caps_frames_per_tick() -> None:
    runner = EngineRunner(controller=StateController(), max_frames_per_tick=2)
    for _ in range(5):
        runner.submit(OUTSIDE_FRAME)

    assert runner.run_once() == 2
    assert runner.run_once() == 2
    assert runner.run_once() == 1


def test_on_tick_receives_tick_count() -> None:
    seen = []
    runner = EngineRunner(controller=StateController(), on_tick=seen.append)

    runner.run_forever(max_ticks=3)

    assert seen == [1, 2, 3]


def test_background_loop_starts_and_stops() -> None:
    runner = EngineRunner(controller=StateController(), tick_rate_hz=500.0)
    runner.start()
    runner.submit(INSIDE_FRAME)

    deadline = time.monotonic() + 2.0
    while runner.controller.current_state is None and time.monotonic() < deadline:
        time.sleep(0.01)
    runner.stop()

    assert runner.controller.current_state == LocationState.inside(0)
    assert not runner.running
