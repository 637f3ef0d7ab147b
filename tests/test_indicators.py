from __future__ import annotations

import math
from typing import List, Tuple

import pytest

from floorpulse.config import SceneConfig
from floorpulse.indicators import IndicatorPool
from floorpulse.models import LocationState, Marker, MarkerKind


class RecordingRenderer:
    def __init__(self) -> None:
        self.events: List[Tuple[str, int]] = []

    def create_marker(self, marker: Marker) -> None:
        self.events.append(("create", marker.marker_id))

    def update_marker(self, marker: Marker) -> None:
        self.events.append(("update", marker.marker_id))

    def remove_marker(self, marker_id: int) -> None:
        self.events.append(("remove", marker_id))


def test_seed_creates_marker_at_initial_scale_and_opacity() -> None:
    renderer = RecordingRenderer()
    pool = IndicatorPool(renderer=renderer)

    marker = pool.seed(MarkerKind.OUTSIDE, (-14, 0, -15))

    assert marker.scale == (4.0, 4.0, 4.0)
    assert marker.opacity == 0.5
    assert marker.position == (-14.0, 0.0, -15.0)
    assert pool.count(MarkerKind.OUTSIDE) == 1
    assert pool.count(MarkerKind.INSIDE) == 0
    assert renderer.events == [("create", marker.marker_id)]


def test_tick_grows_scale_by_index_and_decays_opacity() -> None:
    pool = IndicatorPool()
    pool.seed(MarkerKind.INSIDE, (0, 0, 0))
    pool.seed(MarkerKind.INSIDE, (0, 0, 0))
    pool.seed(MarkerKind.INSIDE, (0, 0, 0))

    pool.tick(None)

    first, second, third = pool.markers(MarkerKind.INSIDE)
    assert first.scale == (4.0, 4.0, 4.0)
    assert math.isclose(second.scale[0], 4.02)
    assert math.isclose(second.scale[1], 4.02)
    assert second.scale[2] == 4.0
    assert math.isclose(third.scale[0], 4.04)
    assert all(math.isclose(marker.opacity, 0.496) for marker in (first, second, third))


def test_kinds_are_indexed_independently() -> None:
    pool = IndicatorPool()
    pool.seed(MarkerKind.OUTSIDE, (0, 0, 0))
    pool.seed(MarkerKind.INSIDE, (0, 0, 0))

    pool.tick(None)

    assert pool.markers(MarkerKind.OUTSIDE)[0].scale == (4.0, 4.0, 4.0)
    assert pool.markers(MarkerKind.INSIDE)[0].scale == (4.0, 4.0, 4.0)


def test_decayed_markers_recycle_instead_of_expiring() -> None:
    pool = IndicatorPool()
    pool.seed(MarkerKind.OUTSIDE, (0, 0, 0))

    for _ in range(200):
        pool.tick(None)

    (marker,) = pool.markers(MarkerKind.OUTSIDE)
    assert marker.scale == (2.0, 2.0, 2.0)
    assert 0.0 < marker.opacity <= 0.5


def test_outside_population_is_capped() -> None:
    pool = IndicatorPool()
    outside = LocationState.outside()

    counts = []
    for _ in range(50):
        pool.tick(outside)
        counts.append(pool.count(MarkerKind.OUTSIDE))

    assert max(counts) == 5
    assert counts[:5] == [1, 2, 3, 4, 5]
    assert pool.count(MarkerKind.INSIDE) == 0
    assert all(marker.position == (-14.0, 0.0, -15.0) for marker in pool.markers(MarkerKind.OUTSIDE))


def test_inside_population_is_capped_at_floor_height() -> None:
    pool = IndicatorPool()
    inside = LocationState.inside(3)

    for _ in range(50):
        pool.tick(inside)
        assert pool.count(MarkerKind.INSIDE) <= 10

    assert pool.count(MarkerKind.INSIDE) == 10
    assert pool.count(MarkerKind.OUTSIDE) == 0
    assert {marker.position for marker in pool.markers(MarkerKind.INSIDE)} == {(-14.0, 15.0, -15.0)}


def test_calibrating_spawns_nothing() -> None:
    pool = IndicatorPool()

    for _ in range(10):
        pool.tick(LocationState.calibrating())

    assert len(pool) == 0


def test_reset_removes_everything_and_is_idempotent() -> None:
    renderer = RecordingRenderer()
    pool = IndicatorPool(renderer=renderer)
    outside = pool.seed(MarkerKind.OUTSIDE, (0, 0, 0))
    inside = pool.seed(MarkerKind.INSIDE, (0, 5, 0))

    pool.reset()
    assert len(pool) == 0
    pool.reset()
    assert len(pool) == 0

    removed = [marker_id for event, marker_id in renderer.events if event == "remove"]
    assert sorted(removed) == sorted([outside.marker_id, inside.marker_id])


def test_markers_returns_copies() -> None:
    pool = IndicatorPool()
    pool.seed(MarkerKind.OUTSIDE, (0, 0, 0))

    snapshot = pool.markers(MarkerKind.OUTSIDE)[0]
    snapshot.opacity = 0.0

    assert pool.markers(MarkerKind.OUTSIDE)[0].opacity == 0.5


def test_tick_reports_updates_to_renderer() -> None:
    renderer = RecordingRenderer()
    pool = IndicatorPool(renderer=renderer)
    marker = pool.seed(MarkerKind.OUTSIDE, (0, 0, 0))
    renderer.events.clear()

    pool.tick(LocationState.outside())

    assert renderer.events[0] == ("update", marker.marker_id)
    assert renderer.events[1][0] == "create"


def test_scene_config_changes_caps_and_spacing() -> None:
    pool = IndicatorPool(scene=SceneConfig(inside_cap=2, floor_spacing=3.0, inside_anchor=(1.0, 2.0)))

    for _ in range(5):
        pool.tick(LocationState.inside(4))

    assert pool.count(MarkerKind.INSIDE) == 2
    assert pool.markers(MarkerKind.INSIDE)[0].position == (1.0, 12.0, 2.0)


def test_unknown_kind_is_rejected() -> None:
    pool = IndicatorPool()

    with pytest.raises(ValueError, match="Unknown marker kind"):
        pool.seed("sideways", (0, 0, 0))
