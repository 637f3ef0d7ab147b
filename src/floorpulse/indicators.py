from __future__ import annotations

from dataclasses import replace
import itertools
from typing import Dict, List, Optional, Protocol, Tuple

from .config import SceneConfig
from .models import LocationState, Marker, MarkerKind, Vector3


class MarkerRenderer(Protocol):
    def create_marker(self, marker: Marker) -> None: ...

    def update_marker(self, marker: Marker) -> None: ...

    def remove_marker(self, marker_id: int) -> None: ...


class IndicatorPool:
    """Bounded pools of pulsing markers, one per MarkerKind.

    The pool owns every Marker. Renderers receive copies on create/update and
    bare ids on removal, so they never hold a live reference.
    """

    def __init__(
        self,
        scene: Optional[SceneConfig] = None,
        renderer: Optional[MarkerRenderer] = None,
    ) -> None:
        self.scene = scene or SceneConfig()
        self.renderer = renderer
        self._markers: Dict[str, List[Marker]] = {kind: [] for kind in MarkerKind.ALL}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return sum(len(markers) for markers in self._markers.values())

    def count(self, kind: str) -> int:
        return len(self._sequence(kind))

    def markers(self, kind: str) -> Tuple[Marker, ...]:
        return tuple(replace(marker) for marker in self._sequence(kind))

    def reset(self) -> None:
        for kind in MarkerKind.ALL:
            removed = self._markers[kind]
            self._markers[kind] = []
            for marker in removed:
                self._notify_remove(marker.marker_id)

    def seed(self, kind: str, position: Vector3) -> Marker:
        sequence = self._sequence(kind)
        scale = self.scene.initial_scale
        marker = Marker(
            marker_id=next(self._ids),
            kind=kind,
            position=tuple(float(value) for value in position),
            opacity=self.scene.initial_opacity,
            scale=(scale, scale, scale),
        )
        sequence.append(marker)
        if self.renderer is not None:
            self.renderer.create_marker(replace(marker))
        return replace(marker)

    def seed_for(self, location: Optional[LocationState]) -> Optional[Marker]:
        """Seed the single marker that represents ``location``, if any."""
        if location is None:
            return None
        if location.is_outside:
            return self.seed(MarkerKind.OUTSIDE, self.scene.outside_anchor)
        if location.is_inside:
            return self.seed(MarkerKind.INSIDE, self.scene.inside_position(location.floor))
        return None

    def tick(self, location: Optional[LocationState]) -> None:
        for kind in MarkerKind.ALL:
            self._advance(kind)

        # Recycled markers are back at initial opacity, so nothing expires here.
        for kind in MarkerKind.ALL:
            expired = [marker for marker in self._markers[kind] if marker.opacity <= 0]
            if not expired:
                continue
            self._markers[kind] = [
                marker for marker in self._markers[kind] if marker.opacity > 0
            ]
            for marker in expired:
                self._notify_remove(marker.marker_id)

        if location is None:
            return
        if location.is_outside and self.count(MarkerKind.OUTSIDE) < self.scene.outside_cap:
            self.seed(MarkerKind.OUTSIDE, self.scene.outside_anchor)
        if location.is_inside and self.count(MarkerKind.INSIDE) < self.scene.inside_cap:
            self.seed(MarkerKind.INSIDE, self.scene.inside_position(location.floor))

    def _advance(self, kind: str) -> None:
        scene = self.scene
        for index, marker in enumerate(self._markers[kind]):
            scale_x, scale_y, scale_z = marker.scale
            growth = index * scene.scale_growth
            marker.scale = (scale_x + growth, scale_y + growth, scale_z)
            marker.opacity -= scene.opacity_decay
            if marker.opacity <= 0:
                recycled = scene.recycle_scale
                marker.scale = (recycled, recycled, recycled)
                marker.opacity = scene.initial_opacity
            if self.renderer is not None:
                self.renderer.update_marker(replace(marker))

    def _sequence(self, kind: str) -> List[Marker]:
        try:
            return self._markers[kind]
        except KeyError:
            raise ValueError(f"Unknown marker kind: {kind!r}.") from None

    def _notify_remove(self, marker_id: int) -> None:
        if self.renderer is not None:
            self.renderer.remove_marker(marker_id)
